"""
Wall-clock aligned driver for the trading cycle.

The driver waits for the next interval boundary (``:00``, ``:05``, ``:10`` ...
for the default five-minute cadence), runs exactly one pipeline pass, cools
down and repeats. Cycles never overlap.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = timedelta(minutes=5)
_ONE_DAY = timedelta(days=1)
_ONE_MINUTE = timedelta(minutes=1)


class CyclePhase(str, Enum):
    IDLE = "idle"
    RUNNING_CYCLE = "running_cycle"
    COOLDOWN_AFTER_SUCCESS = "cooldown_after_success"
    COOLDOWN_AFTER_FAILURE = "cooldown_after_failure"


class CycleRunner(Protocol):
    async def run(self, dry_run: bool = False) -> object:
        ...


def _check_interval(interval: timedelta) -> None:
    if interval <= timedelta(0):
        raise ValueError("Interval must be positive")
    if interval % _ONE_MINUTE:
        raise ValueError("Interval must be a whole number of minutes")
    if _ONE_DAY % interval:
        raise ValueError("Interval must divide one day evenly")


def next_boundary(now: datetime, interval: timedelta = DEFAULT_INTERVAL) -> datetime:
    """
    Return the first interval boundary strictly after ``now``.

    ``now`` is floored to the minute and measured from midnight; the result is
    the next multiple of ``interval`` past that point. Hour and day rollover
    fall out of the arithmetic: 12:07:30 -> 12:10, 12:59:10 -> 13:00,
    23:58:00 -> 00:00 next day, and 12:00:00 -> 12:05.
    """
    _check_interval(interval)
    floored = now.replace(second=0, microsecond=0)
    midnight = floored.replace(hour=0, minute=0)
    elapsed = floored - midnight
    return midnight + (elapsed // interval + 1) * interval


def seconds_until_boundary(now: datetime, interval: timedelta = DEFAULT_INTERVAL) -> float:
    return max(0.0, (next_boundary(now, interval) - now).total_seconds())


class TradingDriver:
    """
    Run a trading cycle on every interval boundary.

    ``clock`` and ``sleep`` are injectable so tests can drive the loop without
    waiting on the wall clock. ``countdown_interval`` controls the periodic
    "next cycle in ..." log line emitted while waiting; ``None`` disables it.
    """

    def __init__(
        self,
        cycle: CycleRunner,
        *,
        interval: timedelta = DEFAULT_INTERVAL,
        success_cooldown: float = 10.0,
        failure_cooldown: float = 60.0,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        countdown_interval: Optional[float] = 60.0,
    ) -> None:
        _check_interval(interval)
        self._cycle = cycle
        self.interval = interval
        self.success_cooldown = success_cooldown
        self.failure_cooldown = failure_cooldown
        self._clock = clock
        self._sleep = sleep
        self.countdown_interval = countdown_interval
        self.phase = CyclePhase.IDLE
        self.transitions: List[Tuple[CyclePhase, CyclePhase]] = []
        self.completed_cycles = 0
        self.failed_cycles = 0

    def _transition(self, phase: CyclePhase) -> None:
        previous = self.phase
        self.phase = phase
        self.transitions.append((previous, phase))
        logger.debug("Driver phase %s -> %s", previous.value, phase.value)

    async def run_forever(self, max_cycles: Optional[int] = None) -> None:
        """Run the startup dry cycle, then boundary-aligned cycles until cancelled."""
        logger.info(
            "Trading driver starting (interval=%ss, cooldowns=%ss/%ss)",
            int(self.interval.total_seconds()),
            self.success_cooldown,
            self.failure_cooldown,
        )
        await self.run_startup_check()
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            await self.wait_for_boundary()
            await self.run_once()
            cycles += 1

    async def run_startup_check(self) -> None:
        """One immediate dry pass. A failure here is logged and does not stop the driver."""
        self._transition(CyclePhase.RUNNING_CYCLE)
        try:
            result = await self._cycle.run(dry_run=True)
        except Exception:
            logger.exception("Startup dry cycle failed; continuing to boundary loop")
        else:
            logger.info("Startup dry cycle finished: %s", getattr(result, "status", result))
        finally:
            self._transition(CyclePhase.IDLE)

    async def wait_for_boundary(self) -> datetime:
        now = self._clock()
        target = next_boundary(now, self.interval)
        delay = max(0.0, (target - now).total_seconds())
        logger.info("Next cycle at %s (in %.0fs)", target.strftime("%Y-%m-%d %H:%M:%S"), delay)
        countdown = None
        if self.countdown_interval and delay > self.countdown_interval:
            countdown = asyncio.create_task(self._log_countdown(target), name="cycle-countdown")
        try:
            await self._sleep(delay)
        finally:
            if countdown is not None:
                countdown.cancel()
                try:
                    await countdown
                except asyncio.CancelledError:
                    pass
        return target

    async def run_once(self) -> Optional[object]:
        """Run one live cycle followed by the matching cooldown."""
        self._transition(CyclePhase.RUNNING_CYCLE)
        try:
            result = await self._cycle.run(dry_run=False)
        except Exception:
            self.failed_cycles += 1
            logger.exception("Trading cycle failed; backing off for %ss", self.failure_cooldown)
            self._transition(CyclePhase.COOLDOWN_AFTER_FAILURE)
            await self._sleep(self.failure_cooldown)
            self._transition(CyclePhase.IDLE)
            return None

        self.completed_cycles += 1
        logger.info("Trading cycle finished: %s", getattr(result, "status", result))
        self._transition(CyclePhase.COOLDOWN_AFTER_SUCCESS)
        await self._sleep(self.success_cooldown)
        self._transition(CyclePhase.IDLE)
        return result

    async def _log_countdown(self, target: datetime) -> None:
        # Real sleep so an injected test sleep never drives this loop.
        while True:
            await asyncio.sleep(self.countdown_interval)
            remaining = (target - self._clock()).total_seconds()
            if remaining <= 0:
                return
            logger.info("Next cycle in %dm %02ds", remaining // 60, remaining % 60)
