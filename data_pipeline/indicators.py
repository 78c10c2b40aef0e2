"""
Indicator calculation utilities.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence

import numpy as np
import pandas as pd


@dataclass(slots=True)
class KlineSummary:
    timeframe: str
    count: int
    last_close: float | None = None
    change_pct: float | None = None
    high: float | None = None
    low: float | None = None
    macd: float | None = None
    macd_signal: float | None = None
    macd_hist: float | None = None
    rsi: float | None = None
    realized_volatility: float | None = None
    volume_sum: float | None = None
    volume_avg: float | None = None
    recent: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(slots=True)
class OrderBookSummary:
    best_bid: float | None = None
    best_ask: float | None = None
    mid_price: float | None = None
    spread: float | None = None
    spread_bps: float | None = None
    bid_volume: float = 0.0
    ask_volume: float = 0.0
    imbalance: float | None = None


class IndicatorCalculator:
    """Compute technical indicators on WEEX candles and order book snapshots."""

    def __init__(self, *, recent_candles: int = 5) -> None:
        self.recent_candles = recent_candles

    def summarize_candles(self, timeframe: str, candles: Iterable[Sequence[Any]]) -> KlineSummary:
        df = self.candles_to_df(candles)
        if df.empty:
            return KlineSummary(timeframe=timeframe, count=0)
        close = df["close"]

        exp12 = close.ewm(span=12, adjust=False).mean()
        exp26 = close.ewm(span=26, adjust=False).mean()
        macd_val = exp12 - exp26
        signal = macd_val.ewm(span=9, adjust=False).mean()
        hist = macd_val - signal

        delta = close.diff()
        gain = np.where(delta > 0, delta, 0.0)
        loss = np.where(delta < 0, -delta, 0.0)
        avg_gain = pd.Series(gain).rolling(window=14).mean()
        avg_loss = pd.Series(loss).rolling(window=14).mean()
        rs = avg_gain / avg_loss
        rsi = 100 - (100 / (1 + rs))

        returns = close.pct_change().dropna()
        realized_vol = returns.std() * np.sqrt(len(returns)) if len(returns) > 1 else None

        first_open = float(df["open"].iloc[0])
        last_close = float(close.iloc[-1])
        change_pct = (last_close - first_open) / first_open * 100 if first_open else None

        recent = [
            {
                "time": row.timestamp.strftime("%Y-%m-%d %H:%M"),
                "open": row.open,
                "high": row.high,
                "low": row.low,
                "close": row.close,
                "volume": row.volume,
            }
            for row in df.tail(self.recent_candles).itertuples(index=False)
        ]

        return KlineSummary(
            timeframe=timeframe,
            count=len(df),
            last_close=last_close,
            change_pct=_finite(change_pct),
            high=float(df["high"].max()),
            low=float(df["low"].min()),
            macd=_finite(macd_val.iloc[-1]),
            macd_signal=_finite(signal.iloc[-1]),
            macd_hist=_finite(hist.iloc[-1]),
            rsi=_finite(rsi.iloc[-1]),
            realized_volatility=_finite(realized_vol),
            volume_sum=float(df["volume"].sum()),
            volume_avg=float(df["volume"].mean()),
            recent=recent,
        )

    @staticmethod
    def summarize_orderbook(orderbook: Dict[str, Any] | None, depth: int | None = None) -> OrderBookSummary:
        """Compute best prices, spread and bid/ask imbalance from a depth snapshot."""
        orderbook = orderbook or {}
        bids = list(orderbook.get("bids") or [])[:depth]
        asks = list(orderbook.get("asks") or [])[:depth]
        bid_vol = sum(float(level[1]) for level in bids)
        ask_vol = sum(float(level[1]) for level in asks)
        summary = OrderBookSummary(bid_volume=bid_vol, ask_volume=ask_vol)
        total = bid_vol + ask_vol
        if total:
            summary.imbalance = (bid_vol - ask_vol) / total
        if bids and asks:
            summary.best_bid = float(bids[0][0])
            summary.best_ask = float(asks[0][0])
            summary.mid_price = (summary.best_bid + summary.best_ask) / 2
            summary.spread = summary.best_ask - summary.best_bid
            if summary.mid_price:
                summary.spread_bps = summary.spread / summary.mid_price * 10_000
        return summary

    @staticmethod
    def candles_to_df(candles: Iterable[Sequence[Any]]) -> pd.DataFrame:
        rows = []
        for candle in candles:
            if len(candle) < 6:
                continue
            ts, op, hi, lo, cl, vol = candle[:6]
            rows.append(
                {
                    "timestamp": pd.to_datetime(int(ts), unit="ms", utc=True),
                    "open": float(op),
                    "high": float(hi),
                    "low": float(lo),
                    "close": float(cl),
                    "volume": float(vol),
                }
            )
        if not rows:
            return pd.DataFrame(columns=["timestamp", "open", "high", "low", "close", "volume"])
        return pd.DataFrame(rows).sort_values("timestamp").reset_index(drop=True)


def _finite(value: Any) -> float | None:
    if value is None:
        return None
    number = float(value)
    return number if math.isfinite(number) else None
