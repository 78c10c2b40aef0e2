"""
Best-effort upload of decision records to the WEEX AI log endpoint.

Uploads run as background tasks. Their failures are logged and never reach
the trading cycle, whose outcome is classified independently.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence, Set

from data_pipeline.collector import MarketSnapshot
from exchanges.weex.client import WeexClient, is_acknowledged
from execution.order_executor import OrderOutcome
from models.schemas import TradingDecision

logger = logging.getLogger(__name__)

MAX_REPORT_CHARS = 8000


class AuditReporter:
    """Fire-and-forget reporter for decision-cycle records."""

    def __init__(
        self,
        client: WeexClient,
        *,
        model_id: str,
        stage: str = "live",
        enabled: bool = True,
    ) -> None:
        self._client = client
        self.model_id = model_id
        self.stage = stage
        self.enabled = enabled
        self._pending: Set[asyncio.Task] = set()

    def build_payload(
        self,
        snapshot: MarketSnapshot,
        decision: TradingDecision,
        outcomes: Sequence[OrderOutcome],
        explanation: str,
        *,
        stage: Optional[str] = None,
    ) -> Dict[str, Any]:
        order_id: Optional[str] = next(
            (outcome.order_id for outcome in outcomes if outcome.success and outcome.order_id),
            None,
        )
        return {
            "orderId": order_id,
            "stage": stage or self.stage,
            "model": self.model_id,
            "input": {
                "symbol": snapshot.symbol,
                "timestamp": snapshot.fetched_at.isoformat(),
                "currentPrice": snapshot.last_price,
                "positions": snapshot.positions,
                "marketReport": snapshot.report[:MAX_REPORT_CHARS],
            },
            "output": {
                **decision.to_dict(),
                "executionResults": [outcome.to_dict() for outcome in outcomes],
            },
            "explanation": explanation,
        }

    def submit(self, payload: Dict[str, Any]) -> Optional[asyncio.Task]:
        """Schedule an upload on the running loop and return immediately."""
        if not self.enabled:
            return None
        if not self._client.has_credentials:
            logger.debug("Skipping AI log upload: no WEEX credentials.")
            return None
        task = asyncio.create_task(self._upload(payload), name="weex-ai-log-upload")
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def drain(self) -> None:
        """Wait for outstanding uploads (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _upload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await asyncio.to_thread(self._client.upload_ai_log, payload)
        if is_acknowledged(response):
            logger.info("AI log uploaded (orderId=%s)", payload.get("orderId"))
        else:
            logger.warning("AI log upload not acknowledged: %s", response)
        return response

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("AI log upload failed: %s", exc)
