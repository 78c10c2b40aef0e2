"""
Market snapshot collector for the traded WEEX contract.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from data_pipeline.indicators import IndicatorCalculator, KlineSummary, OrderBookSummary
from data_pipeline.report import render_market_report
from exchanges.weex.client import WeexClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MarketSnapshot:
    """Raw exchange data for one cycle plus its derived statistics."""

    symbol: str
    fetched_at: datetime
    ticker: Dict[str, Any]
    candles: Dict[str, List[List[Any]]]
    depth: Dict[str, Any]
    positions: List[Dict[str, Any]] = field(default_factory=list)
    assets: List[Dict[str, Any]] = field(default_factory=list)
    private_available: bool = False
    kline_summaries: Dict[str, KlineSummary] = field(default_factory=dict)
    orderbook_summary: OrderBookSummary = field(default_factory=OrderBookSummary)
    report: str = ""

    @property
    def last_price(self) -> float | None:
        try:
            return float(self.ticker.get("last"))
        except (TypeError, ValueError):
            return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "fetched_at": self.fetched_at.isoformat(),
            "ticker": self.ticker,
            "candles": self.candles,
            "depth": self.depth,
            "positions": self.positions,
            "assets": self.assets,
            "private_available": self.private_available,
            "kline_summaries": {tf: asdict(summary) for tf, summary in self.kline_summaries.items()},
            "orderbook_summary": asdict(self.orderbook_summary),
        }


class MarketCollector:
    """Fetches ticker, candles, depth and (when authenticated) account state."""

    def __init__(
        self,
        client: WeexClient,
        symbol: str,
        *,
        timeframes: Sequence[str] = ("5m", "15m", "1h"),
        candle_limit: int = 48,
        depth_limit: int = 15,
        indicator_calc: IndicatorCalculator | None = None,
    ) -> None:
        if not timeframes:
            raise ValueError("At least one kline timeframe must be configured.")
        self.client = client
        self.symbol = symbol.strip().lower()
        self.timeframes = list(timeframes)
        self.candle_limit = candle_limit
        self.depth_limit = depth_limit
        self.indicator_calc = indicator_calc or IndicatorCalculator()

    def collect(self) -> MarketSnapshot:
        """Fetch one snapshot. Exchange errors propagate to the caller."""
        fetched_at = datetime.now(tz=timezone.utc)
        ticker = self.client.get_ticker(self.symbol)
        candles = {
            tf: self.client.get_candles(self.symbol, tf, limit=self.candle_limit) or []
            for tf in self.timeframes
        }
        depth = self.client.get_depth(self.symbol, limit=self.depth_limit) or {}

        positions: List[Dict[str, Any]] = []
        assets: List[Dict[str, Any]] = []
        private_available = self.client.has_credentials
        if private_available:
            positions = [
                position
                for position in (self.client.get_all_positions() or [])
                if str(position.get("symbol", self.symbol)).lower() == self.symbol
            ]
            assets = self.client.get_assets() or []
        else:
            logger.warning("No WEEX credentials; market report will omit positions and assets.")

        snapshot = MarketSnapshot(
            symbol=self.symbol,
            fetched_at=fetched_at,
            ticker=ticker or {},
            candles=candles,
            depth=depth,
            positions=positions,
            assets=assets,
            private_available=private_available,
            kline_summaries={
                tf: self.indicator_calc.summarize_candles(tf, rows) for tf, rows in candles.items()
            },
            orderbook_summary=self.indicator_calc.summarize_orderbook(depth, self.depth_limit),
        )
        snapshot.report = render_market_report(snapshot)
        logger.info(
            "Collected %s snapshot: last=%s, positions=%d",
            self.symbol,
            snapshot.ticker.get("last"),
            len(positions),
        )
        return snapshot
