"""
DeepSeek model adapter for trading decision generation.

Supports both offline mode (no API key) and live mode using the DeepSeek API
when `DEEPSEEK_API_KEY` is set.
"""

from __future__ import annotations

import os

from models.adapters.base import ChatCompletionAdapter

DEEPSEEK_ENDPOINT = "https://api.deepseek.com/v1/chat/completions"


class DeepSeekAdapter(ChatCompletionAdapter):
    """Adapter that calls DeepSeek's chat completion endpoint directly."""

    endpoint = DEEPSEEK_ENDPOINT

    def __init__(
        self,
        *,
        model: str = "deepseek-chat",
        temperature: float = 0.2,
        api_key: str | None = None,
        timeout: float = 120.0,
        strategy_prompt: str | None = None,
    ) -> None:
        super().__init__(
            "deepseek",
            remote_model=model,
            api_key=api_key if api_key is not None else os.getenv("DEEPSEEK_API_KEY"),
            temperature=temperature,
            timeout=timeout,
            strategy_prompt=strategy_prompt,
        )

    def _system_prompt(self) -> str:
        return (
            "You are DeepSeek, an LLM helping a trading team manage a WEEX "
            "perpetual futures account. Respond strictly with JSON containing the "
            "keys `analysis`, `signal`, `execution` and `riskWarning` exactly as "
            "described in the user message."
        )
