"""
Parsing and schema validation for model trading decisions.

Validation is the only gate between model output and the exchange, so any
deviation from the expected shape rejects the whole decision.
"""

from __future__ import annotations

import json
import re
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Sequence

from models.schemas import (
    ORDER_TYPES,
    PRICE_TYPES,
    SIGNAL_CONFIDENCES,
    TRADING_ACTIONS,
    ExecutionPlan,
    MarketAnalysis,
    OrderInstruction,
    TradingDecision,
    TradingSignal,
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class DecisionValidationError(ValueError):
    """Raised when a model reply does not match the trading decision shape."""

    def __init__(self, violations: Sequence[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = list(violations)


def extract_json_text(text: str) -> str:
    """Strip optional Markdown code fences around a JSON document."""
    cleaned = text.strip()
    match = _FENCE_RE.match(cleaned)
    if match:
        return match.group(1)
    return cleaned


def parse_decision(payload: str | Mapping[str, Any]) -> TradingDecision:
    """
    Parse a model reply into a `TradingDecision`.

    Accepts the raw JSON text (optionally fenced) or an already decoded
    mapping. Raises DecisionValidationError listing every violation found.
    """
    if isinstance(payload, str):
        try:
            data = json.loads(extract_json_text(payload))
        except json.JSONDecodeError as exc:
            raise DecisionValidationError([f"Reply is not valid JSON: {exc}"]) from exc
    else:
        data = payload
    if not isinstance(data, Mapping):
        raise DecisionValidationError(["Decision must be a JSON object."])

    violations = validate_decision(data)
    if violations:
        raise DecisionValidationError(violations)

    analysis = data["analysis"]
    signal = data["signal"]
    execution = data["execution"]
    orders = [
        OrderInstruction(
            type=str(order["type"]).strip(),
            size=_as_text(order["size"]),
            price_type=str(order["priceType"]).upper(),
            price=_as_text(order["price"]),
            type_description=str(order.get("typeDescription") or ""),
            reasoning=str(order.get("reasoning") or ""),
        )
        for order in execution.get("orders") or []
    ]
    return TradingDecision(
        analysis=MarketAnalysis(
            market_trend=str(analysis["marketTrend"]),
            position_status=str(analysis["positionStatus"]),
            risk_assessment=str(analysis["riskAssessment"]),
        ),
        signal=TradingSignal(
            action=str(signal["action"]).upper(),
            confidence=str(signal["confidence"]).upper(),
            reasoning=str(signal["reasoning"]),
        ),
        execution=ExecutionPlan(has_order=execution["hasOrder"], orders=orders),
        risk_warning=str(data.get("riskWarning") or ""),
        raw=dict(data),
    )


def validate_decision(data: Mapping[str, Any]) -> List[str]:
    """Return the list of schema violations (empty when the decision is valid)."""
    violations: List[str] = []

    for key in ("analysis", "signal", "execution"):
        if not isinstance(data.get(key), Mapping):
            violations.append(f"Missing required section '{key}'.")
    if violations:
        return violations

    analysis = data["analysis"]
    for key in ("marketTrend", "positionStatus", "riskAssessment"):
        if not _non_empty(analysis.get(key)):
            violations.append(f"analysis.{key} must be a non-empty string.")

    signal = data["signal"]
    action = str(signal.get("action") or "").upper()
    if action not in TRADING_ACTIONS:
        violations.append(f"Unsupported signal.action '{signal.get('action')}'. Allowed: {sorted(TRADING_ACTIONS)}.")
    confidence = str(signal.get("confidence") or "").upper()
    if confidence not in SIGNAL_CONFIDENCES:
        violations.append(
            f"Unsupported signal.confidence '{signal.get('confidence')}'. Allowed: {sorted(SIGNAL_CONFIDENCES)}."
        )
    if not _non_empty(signal.get("reasoning")):
        violations.append("signal.reasoning must be a non-empty string.")

    execution = data["execution"]
    has_order = execution.get("hasOrder")
    orders = execution.get("orders", [])
    if not isinstance(has_order, bool):
        violations.append("execution.hasOrder must be a boolean.")
    if orders is None:
        orders = []
    if not isinstance(orders, list):
        violations.append("execution.orders must be a list.")
        return violations

    if has_order is True and not orders:
        violations.append("execution.hasOrder is true but no orders were supplied.")
    if has_order is False and orders:
        violations.append("execution.hasOrder is false but orders were supplied.")

    for index, order in enumerate(orders, start=1):
        violations.extend(_validate_order(index, order))
    return violations


def _validate_order(index: int, order: Any) -> List[str]:
    prefix = f"orders[{index}]"
    if not isinstance(order, Mapping):
        return [f"{prefix} must be an object."]
    problems: List[str] = []
    order_type = str(order.get("type") or "").strip()
    if order_type not in ORDER_TYPES:
        problems.append(f"{prefix}.type '{order.get('type')}' is not one of {sorted(ORDER_TYPES)}.")
    price_type = str(order.get("priceType") or "").upper()
    if price_type not in PRICE_TYPES:
        problems.append(f"{prefix}.priceType '{order.get('priceType')}' is not one of {sorted(PRICE_TYPES)}.")
    for key in ("size", "price"):
        if not _positive_decimal(order.get(key)):
            problems.append(f"{prefix}.{key} must be a positive number, got {order.get(key)!r}.")
    return problems


def _non_empty(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _positive_decimal(value: Any) -> bool:
    if value is None or isinstance(value, bool) or value == "":
        return False
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        return False
    return number.is_finite() and number > 0


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else str(value)
