"""
Helper utilities to bootstrap the adapter registry from trader settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from models.adapters.deepseek import DeepSeekAdapter
from models.adapters.openrouter import OpenRouterAdapter
from models.prompts import get_strategy_prompt
from models.registry import AdapterRegistry

if TYPE_CHECKING:  # pragma: no cover
    from services.settings import TraderSettings


def build_default_registry(settings: "TraderSettings") -> AdapterRegistry:
    """Return registry pre-populated with the OpenRouter and DeepSeek adapters."""
    strategy = get_strategy_prompt(settings.prompt_path)
    registry = AdapterRegistry()
    openrouter_kwargs = {"model": settings.model} if settings.provider == "openrouter" and settings.model else {}
    deepseek_kwargs = {"model": settings.model} if settings.provider == "deepseek" and settings.model else {}
    registry.register(
        OpenRouterAdapter(
            api_key="" if settings.offline else settings.openrouter_api_key,
            strategy_prompt=strategy,
            **openrouter_kwargs,
        )
    )
    registry.register(
        DeepSeekAdapter(
            api_key="" if settings.offline else settings.deepseek_api_key,
            strategy_prompt=strategy,
            **deepseek_kwargs,
        )
    )
    return registry
