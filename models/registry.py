"""
Provider registry for decision adapters.

Both providers are registered at startup; the trading cycle uses whichever
one the settings select.
"""

from __future__ import annotations

import logging
from typing import Dict

from models.adapters.base import BaseModelAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Decision adapters keyed by provider name (their ``model_id``)."""

    def __init__(self) -> None:
        self._adapters: Dict[str, BaseModelAdapter] = {}

    def register(self, adapter: BaseModelAdapter, *, overwrite: bool = False) -> None:
        provider = adapter.model_id
        if provider in self._adapters and not overwrite:
            raise KeyError(f"Provider '{provider}' is already registered")
        self._adapters[provider] = adapter

    def get(self, provider: str) -> BaseModelAdapter:
        adapter = self._adapters.get(provider.strip().lower())
        if adapter is None:
            raise KeyError(f"Unknown decision provider '{provider}'. Registered: {sorted(self._adapters)}")
        return adapter

    def select(self, provider: str) -> BaseModelAdapter:
        """Return the adapter for ``provider`` and log which model will answer."""
        adapter = self.get(provider)
        mode = "offline" if getattr(adapter, "offline", False) else getattr(adapter, "remote_model", adapter.model_id)
        logger.info("Decision provider: %s (%s)", adapter.model_id, mode)
        return adapter

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()
