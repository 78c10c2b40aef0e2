"""
One pass of the trading pipeline: fetch, decide, validate, act, persist.
"""

from __future__ import annotations

import asyncio
import logging
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional

from data_pipeline.collector import MarketCollector, MarketSnapshot
from execution.audit import AuditReporter
from execution.order_executor import OrderExecutor, OrderOutcome
from execution.reporting import render_decision, render_execution_report
from models.adapters.base import BaseModelAdapter
from models.schemas import ModelReply, TradingDecision
from models.validation import DecisionValidationError, parse_decision
from services.storage.artifacts import (
    CYCLE_ERROR,
    CYCLE_REPORT,
    DECISION,
    DECISION_ERROR,
    MARKET_REPORT,
    MARKET_SNAPSHOT,
    MODEL_REPLY,
    ArtifactStore,
    CycleArtifacts,
)

logger = logging.getLogger(__name__)


class CycleStatus(str, Enum):
    DRY_RUN = "dry_run"
    EXECUTED = "executed"
    NO_ACTION = "no_action"
    DECISION_FAILED = "decision_failed"


@dataclass(slots=True)
class CycleResult:
    cycle_id: str
    status: CycleStatus
    decision: Optional[TradingDecision] = None
    outcomes: List[OrderOutcome] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def orders_failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)


class TradingCycle:
    """
    Sequential pipeline run once per boundary.

    Market data failures propagate to the driver after being recorded. Decision
    failures are recorded and end the cycle without touching the exchange.
    Per-order failures are recorded on their outcome. Audit upload problems
    never change the result.
    """

    def __init__(
        self,
        collector: MarketCollector,
        adapter: BaseModelAdapter,
        executor: OrderExecutor,
        store: ArtifactStore,
        audit: Optional[AuditReporter] = None,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(tz=timezone.utc),
    ) -> None:
        self._collector = collector
        self._adapter = adapter
        self._executor = executor
        self._store = store
        self._audit = audit
        self._clock = clock

    async def run(self, dry_run: bool = False) -> CycleResult:
        artifacts = self._store.open_cycle(self._clock(), dry_run=dry_run)
        try:
            return await self._run_steps(artifacts, dry_run)
        except Exception:
            self._record_error(artifacts)
            raise

    async def _run_steps(self, artifacts: CycleArtifacts, dry_run: bool) -> CycleResult:
        cycle_id = artifacts.cycle_id

        snapshot: MarketSnapshot = await asyncio.to_thread(self._collector.collect)
        artifacts.write_text(MARKET_REPORT, snapshot.report)
        artifacts.write_json(MARKET_SNAPSHOT, snapshot.to_dict())
        logger.info("[%s] market snapshot collected for %s (last=%s)", cycle_id, snapshot.symbol, snapshot.last_price)

        decision, error = await self._decide(artifacts, snapshot)
        if decision is None:
            return CycleResult(cycle_id, CycleStatus.DECISION_FAILED, error=error)
        artifacts.write_json(DECISION, decision.to_dict())
        logger.info(
            "[%s] decision %s (%s), %d order(s)",
            cycle_id,
            decision.signal.action,
            decision.signal.confidence,
            len(decision.orders),
        )

        if dry_run:
            artifacts.write_text(CYCLE_REPORT, render_execution_report(decision, [], dry_run=True))
            return CycleResult(cycle_id, CycleStatus.DRY_RUN, decision=decision)

        outcomes: List[OrderOutcome] = []
        if decision.execution.has_order:
            outcomes = await asyncio.to_thread(self._executor.execute, decision.orders)
            status = CycleStatus.EXECUTED
        else:
            logger.info("[%s] no order requested; nothing to submit", cycle_id)
            status = CycleStatus.NO_ACTION
        artifacts.write_text(CYCLE_REPORT, render_execution_report(decision, outcomes))

        self._report_audit(cycle_id, snapshot, decision, outcomes)
        return CycleResult(cycle_id, status, decision=decision, outcomes=outcomes)

    async def _decide(
        self, artifacts: CycleArtifacts, snapshot: MarketSnapshot
    ) -> tuple[Optional[TradingDecision], Optional[str]]:
        reply: Optional[ModelReply] = None
        try:
            reply = await self._adapter.generate_decision(snapshot.report)
            artifacts.write_text(MODEL_REPLY, reply.content)
            return parse_decision(reply.content), None
        except DecisionValidationError as exc:
            message = "Decision rejected:\n" + "\n".join(f"- {item}" for item in exc.violations)
            logger.warning("[%s] %s", artifacts.cycle_id, message.replace("\n", " "))
        except Exception as exc:
            message = f"Decision request failed: {type(exc).__name__}: {exc}"
            logger.exception("[%s] decision request to %s failed", artifacts.cycle_id, self._adapter.model_id)
        artifacts.write_text(DECISION_ERROR, message + "\n")
        return None, message

    def _report_audit(
        self,
        cycle_id: str,
        snapshot: MarketSnapshot,
        decision: TradingDecision,
        outcomes: List[OrderOutcome],
    ) -> None:
        if self._audit is None:
            return
        try:
            payload = self._audit.build_payload(snapshot, decision, outcomes, decision.signal.reasoning)
            self._audit.submit(payload)
        except Exception:
            logger.warning("[%s] could not schedule AI log upload", cycle_id, exc_info=True)

    @staticmethod
    def _record_error(artifacts: CycleArtifacts) -> None:
        try:
            artifacts.write_text(CYCLE_ERROR, traceback.format_exc())
        except OSError as exc:
            logger.warning("[%s] could not record cycle error: %s", artifacts.cycle_id, exc)
