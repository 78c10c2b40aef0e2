"""
Decision model package exposing schemas, validation and provider adapters.
"""

from .schemas import ModelReply, OrderInstruction, TradingDecision  # noqa: F401
from .validation import DecisionValidationError, parse_decision  # noqa: F401
from .registry import AdapterRegistry  # noqa: F401
