"""
Submit validated order instructions to WEEX, one independent unit at a time.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from exchanges.weex.client import WeexClient, WeexClientError
from models.schemas import OrderInstruction

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OrderOutcome:
    """Result of submitting a single order instruction."""

    index: int
    instruction: OrderInstruction
    success: bool
    client_oid: str
    order_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "index": self.index,
            "type": self.instruction.type,
            "size": self.instruction.size,
            "priceType": self.instruction.price_type,
            "price": self.instruction.price,
            "success": self.success,
            "client_oid": self.client_oid,
            "order_id": self.order_id,
            "error": self.error,
        }


class OrderExecutor:
    """
    Map decision order instructions onto WEEX placeOrder requests.

    Orders are submitted sequentially in list order. A failure is recorded on
    its own outcome and never prevents the remaining orders from being tried.
    """

    def __init__(
        self,
        client: WeexClient,
        symbol: str,
        *,
        margin_mode: int = 1,
        separated_mode: int = 1,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self.symbol = symbol
        self.margin_mode = margin_mode
        self.separated_mode = separated_mode
        self._clock = clock

    def build_payload(self, instruction: OrderInstruction, index: int) -> Dict[str, object]:
        client_oid = f"ai_{instruction.type}_{int(self._clock() * 1000)}_{index}"
        return {
            "symbol": self.symbol,
            "client_oid": client_oid,
            "size": instruction.size,
            "type": instruction.type,
            "order_type": "0",
            "match_price": "1" if instruction.is_market else "0",
            "price": "" if instruction.is_market else instruction.price,
            "marginMode": self.margin_mode,
            "separatedMode": self.separated_mode,
        }

    def execute(self, instructions: Sequence[OrderInstruction]) -> List[OrderOutcome]:
        outcomes: List[OrderOutcome] = []
        for index, instruction in enumerate(instructions, start=1):
            outcomes.append(self._submit(index, instruction))
        return outcomes

    def _submit(self, index: int, instruction: OrderInstruction) -> OrderOutcome:
        payload = self.build_payload(instruction, index)
        client_oid = str(payload["client_oid"])
        try:
            response = self._client.place_order(payload)
        except WeexClientError as exc:
            logger.error("Order %d (%s) failed: %s", index, client_oid, exc)
            return OrderOutcome(index, instruction, False, client_oid, error=str(exc))
        except Exception as exc:
            logger.exception("Unexpected error submitting order %d (%s)", index, client_oid)
            return OrderOutcome(index, instruction, False, client_oid, error=f"{type(exc).__name__}: {exc}")

        body = response if isinstance(response, dict) else {}
        order_id = body.get("order_id") or body.get("orderId")
        if not order_id:
            logger.error("Order %d (%s) was not assigned an order id: %s", index, client_oid, response)
            return OrderOutcome(index, instruction, False, client_oid, error=f"No order id in response: {response}")
        logger.info(
            "Order %d submitted: type=%s size=%s %s -> order_id=%s",
            index,
            instruction.type,
            instruction.size,
            instruction.price_type,
            order_id,
        )
        return OrderOutcome(
            index,
            instruction,
            True,
            str(body.get("client_oid") or client_oid),
            order_id=str(order_id),
        )
