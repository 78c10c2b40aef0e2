"""
Human-readable renderings of decisions and their execution outcomes.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from execution.order_executor import OrderOutcome
from models.schemas import OrderInstruction, TradingDecision

ACTION_TEXT = {
    "HOLD": ("hold", "观望"),
    "OPEN_LONG": ("open long", "开多"),
    "OPEN_SHORT": ("open short", "开空"),
    "CLOSE_LONG": ("close long", "平多"),
    "CLOSE_SHORT": ("close short", "平空"),
    "ADD_LONG": ("add to long", "加多"),
    "ADD_SHORT": ("add to short", "加空"),
}

ORDER_TYPE_TEXT = {
    "1": ("open long", "开多"),
    "2": ("open short", "开空"),
    "3": ("close long", "平多"),
    "4": ("close short", "平空"),
}


def action_label(action: str) -> str:
    en, zh = ACTION_TEXT.get(action, (action.lower(), action))
    return f"{action} ({en} / {zh})"


def format_order(order: OrderInstruction) -> Tuple[str, str]:
    side_en, side_zh = ORDER_TYPE_TEXT.get(order.type, ("unknown", "未知"))
    price = "market" if order.is_market else order.price
    en = f"{side_en} {order.size} @ {price} ({order.price_type})"
    zh = f"{side_zh} {order.size}，价格 {price}（{order.price_type}）"
    return en, zh


def render_decision(decision: TradingDecision, *, heading: str = "Decision") -> str:
    lines: List[str] = [
        f"# {heading}",
        "",
        "## Analysis",
        f"- Market trend: {decision.analysis.market_trend}",
        f"- Position status: {decision.analysis.position_status}",
        f"- Risk assessment: {decision.analysis.risk_assessment}",
        "",
        "## Signal",
        f"- Action: {action_label(decision.signal.action)}",
        f"- Confidence: {decision.signal.confidence}",
        f"- Reasoning: {decision.signal.reasoning}",
        "",
        "## Orders",
    ]
    if not decision.orders:
        lines.append("- None")
    for index, order in enumerate(decision.orders, start=1):
        en, zh = format_order(order)
        lines.append(f"{index}. {en} / {zh}")
        if order.reasoning:
            lines.append(f"   - {order.reasoning}")
    if decision.risk_warning:
        lines += ["", f"Risk warning: {decision.risk_warning}"]
    return "\n".join(lines) + "\n"


def render_execution_report(
    decision: TradingDecision,
    outcomes: Sequence[OrderOutcome],
    *,
    dry_run: bool = False,
) -> str:
    if dry_run:
        heading = "Dry run: decision recorded, no orders submitted"
    elif not decision.execution.has_order:
        heading = "No action taken"
    else:
        succeeded = sum(1 for outcome in outcomes if outcome.success)
        heading = f"Executed {succeeded}/{len(outcomes)} orders"

    text = render_decision(decision, heading=heading)
    if dry_run or not outcomes:
        return text
    lines = ["", "## Execution results"]
    for outcome in outcomes:
        if outcome.success:
            lines.append(f"{outcome.index}. OK order_id={outcome.order_id} client_oid={outcome.client_oid}")
        else:
            lines.append(f"{outcome.index}. FAILED client_oid={outcome.client_oid}: {outcome.error}")
    return text + "\n".join(lines) + "\n"
