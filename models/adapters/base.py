"""
Abstract base classes for LLM-backed decision adapters.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

import httpx

from models.prompts import build_prompt
from models.schemas import ModelReply
from models.utils import offline_decision

logger = logging.getLogger(__name__)


class ModelInvocationError(RuntimeError):
    """Raised when a provider answers with an unusable payload."""


class BaseModelAdapter(ABC):
    """Common behaviour for trading decision adapters."""

    model_id: str

    def __init__(
        self,
        model_id: str,
        *,
        temperature: float = 0.2,
        strategy_prompt: str | None = None,
    ) -> None:
        self.model_id = model_id
        self.temperature = temperature
        self.strategy_prompt = strategy_prompt

    async def generate_decision(self, market_report: str) -> ModelReply:
        """
        Async entry point used by the trading cycle.

        Returns the raw reply; parsing and validation happen in the caller so
        the unvalidated text can be recorded first.
        """
        prompt = self._build_prompt(market_report)
        return await self._invoke_model(prompt, market_report)

    def _build_prompt(self, market_report: str) -> str:
        return build_prompt(market_report, strategy=self.strategy_prompt)

    @abstractmethod
    async def _invoke_model(self, prompt: str, market_report: str) -> ModelReply:
        """Call the backing LLM and return its raw reply."""

    async def aclose(self) -> None:
        """Optional hook to release resources in async context."""
        return None


class ChatCompletionAdapter(BaseModelAdapter):
    """
    Adapter for OpenAI-compatible ``/chat/completions`` endpoints.

    Without an API key the adapter runs offline and answers with a
    deterministic HOLD decision.
    """

    endpoint: str

    def __init__(
        self,
        model_id: str,
        *,
        remote_model: str,
        api_key: str | None,
        temperature: float = 0.2,
        timeout: float = 120.0,
        strategy_prompt: str | None = None,
    ) -> None:
        super().__init__(model_id, temperature=temperature, strategy_prompt=strategy_prompt)
        self.remote_model = remote_model
        self.api_key = api_key
        self._client: httpx.AsyncClient | None = None
        self._timeout = timeout

    @property
    def offline(self) -> bool:
        return not self.api_key

    async def _invoke_model(self, prompt: str, market_report: str) -> ModelReply:
        if self.offline:
            await asyncio.sleep(0)
            content = json.dumps(offline_decision(market_report), ensure_ascii=False)
            return ModelReply(model_id=f"{self.model_id}-offline", content=content)

        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)

        payload = {
            "model": self.remote_model,
            "temperature": self.temperature,
            "messages": [
                {"role": "system", "content": self._system_prompt()},
                {"role": "user", "content": prompt},
            ],
            "response_format": {"type": "json_object"},
        }
        response = await self._client.post(self.endpoint, headers=self._headers(), json=payload)
        response.raise_for_status()
        data = response.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ModelInvocationError(f"{self.model_id} response parse error: {exc}") from exc
        if not content:
            raise ModelInvocationError(f"{self.model_id} returned an empty completion")
        logger.debug("%s usage: %s", self.remote_model, data.get("usage"))
        return ModelReply(
            model_id=self.remote_model,
            content=content,
            usage=data.get("usage") or {},
        )

    def _headers(self) -> Dict[str, Any]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _system_prompt(self) -> str:
        return (
            "You are an AI trading assistant for a WEEX perpetual futures account. "
            "Respond strictly with one JSON object following the requested schema."
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
