"""
OpenRouter adapter for trading decision generation.

Routes the request to any model OpenRouter hosts (default
``deepseek/deepseek-r1``). Runs offline when `OPENROUTER_API_KEY` is unset.
"""

from __future__ import annotations

import os
from typing import Any, Dict

from models.adapters.base import ChatCompletionAdapter

OPENROUTER_ENDPOINT = "https://openrouter.ai/api/v1/chat/completions"


class OpenRouterAdapter(ChatCompletionAdapter):
    """Adapter that calls OpenRouter's chat completion endpoint."""

    endpoint = OPENROUTER_ENDPOINT

    def __init__(
        self,
        *,
        model: str = "deepseek/deepseek-r1",
        temperature: float = 0.7,
        api_key: str | None = None,
        timeout: float = 180.0,
        strategy_prompt: str | None = None,
        app_title: str = "weex-ai-trader",
    ) -> None:
        super().__init__(
            "openrouter",
            remote_model=model,
            api_key=api_key if api_key is not None else os.getenv("OPENROUTER_API_KEY"),
            temperature=temperature,
            timeout=timeout,
            strategy_prompt=strategy_prompt,
        )
        self.app_title = app_title

    def _headers(self) -> Dict[str, Any]:
        headers = super()._headers()
        headers["X-Title"] = self.app_title
        return headers
