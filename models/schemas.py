"""
Shared data structures for model-produced trading decisions.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal


TradingAction = Literal[
    "HOLD",
    "OPEN_LONG",
    "OPEN_SHORT",
    "CLOSE_LONG",
    "CLOSE_SHORT",
    "ADD_LONG",
    "ADD_SHORT",
]
SignalConfidence = Literal["HIGH", "MEDIUM", "LOW"]
PriceType = Literal["MARKET", "LIMIT"]

TRADING_ACTIONS = frozenset(TradingAction.__args__)  # type: ignore[attr-defined]
SIGNAL_CONFIDENCES = frozenset(SignalConfidence.__args__)  # type: ignore[attr-defined]
PRICE_TYPES = frozenset(PriceType.__args__)  # type: ignore[attr-defined]

# WEEX order type codes.
ORDER_TYPES: Dict[str, str] = {
    "1": "open long",
    "2": "open short",
    "3": "close long",
    "4": "close short",
}


@dataclass(slots=True)
class MarketAnalysis:
    """Free-text assessment written by the model."""

    market_trend: str
    position_status: str
    risk_assessment: str


@dataclass(slots=True)
class TradingSignal:
    """Single top-level action with its confidence and justification."""

    action: TradingAction
    confidence: SignalConfidence
    reasoning: str


@dataclass(slots=True)
class OrderInstruction:
    """One order the model asks to submit."""

    type: str
    size: str
    price_type: PriceType
    price: str
    type_description: str = ""
    reasoning: str = ""

    @property
    def is_market(self) -> bool:
        return self.price_type == "MARKET"


@dataclass(slots=True)
class ExecutionPlan:
    has_order: bool
    orders: List[OrderInstruction] = field(default_factory=list)


@dataclass(slots=True)
class TradingDecision:
    """Validated decision returned by a model adapter."""

    analysis: MarketAnalysis
    signal: TradingSignal
    execution: ExecutionPlan
    risk_warning: str = ""
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def orders(self) -> List[OrderInstruction]:
        return self.execution.orders if self.execution.has_order else []

    def to_dict(self) -> Dict[str, Any]:
        """Serialise back to the camelCase shape the model produced."""
        return {
            "analysis": {
                "marketTrend": self.analysis.market_trend,
                "positionStatus": self.analysis.position_status,
                "riskAssessment": self.analysis.risk_assessment,
            },
            "signal": asdict(self.signal),
            "execution": {
                "hasOrder": self.execution.has_order,
                "orders": [
                    {
                        "type": order.type,
                        "typeDescription": order.type_description,
                        "size": order.size,
                        "priceType": order.price_type,
                        "price": order.price,
                        "reasoning": order.reasoning,
                    }
                    for order in self.execution.orders
                ],
            },
            "riskWarning": self.risk_warning,
        }


@dataclass(slots=True)
class ModelReply:
    """Raw reply from a decision provider, before parsing."""

    model_id: str
    content: str
    usage: Dict[str, Any] = field(default_factory=dict)
    received_at: datetime = field(
        default_factory=lambda: datetime.now(tz=timezone.utc)
    )
