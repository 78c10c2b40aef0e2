"""
Adapter implementations for individual LLM providers.
"""

from .deepseek import DeepSeekAdapter  # noqa: F401
from .openrouter import OpenRouterAdapter  # noqa: F401
