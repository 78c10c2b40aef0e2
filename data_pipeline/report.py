"""
Render a market snapshot as the Markdown report handed to the decision model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

if TYPE_CHECKING:  # pragma: no cover
    from data_pipeline.collector import MarketSnapshot
    from data_pipeline.indicators import KlineSummary, OrderBookSummary


def render_market_report(snapshot: "MarketSnapshot") -> str:
    lines: List[str] = [
        f"# Market report for {snapshot.symbol}",
        f"Generated at: {snapshot.fetched_at.strftime('%Y-%m-%d %H:%M:%S')} UTC",
        "",
        "## Ticker",
    ]
    lines.extend(_ticker_lines(snapshot.ticker))

    lines += ["", "## Klines"]
    for timeframe, summary in snapshot.kline_summaries.items():
        lines.extend(_kline_lines(timeframe, summary))

    lines += ["", "## Order book"]
    lines.extend(_orderbook_lines(snapshot.orderbook_summary))

    lines += ["", "## Positions"]
    if not snapshot.private_available:
        lines.append("- Unavailable (no account credentials).")
    elif not snapshot.positions:
        lines.append("- No open position.")
    else:
        lines.extend(_position_lines(snapshot.positions))

    lines += ["", "## Account"]
    if not snapshot.private_available:
        lines.append("- Unavailable (no account credentials).")
    elif not snapshot.assets:
        lines.append("- No asset information returned.")
    else:
        for asset in snapshot.assets:
            lines.append(
                f"- {asset.get('coinName', '?')}: equity={asset.get('equity', 'n/a')} "
                f"available={asset.get('available', 'n/a')} frozen={asset.get('frozen', 'n/a')} "
                f"unrealizedPnl={asset.get('unrealizePnl', 'n/a')}"
            )
    return "\n".join(lines) + "\n"


def _ticker_lines(ticker: Dict[str, Any]) -> List[str]:
    if not ticker:
        return ["- No ticker data."]
    fields = [
        ("Last price", "last"),
        ("Mark price", "markPrice"),
        ("Index price", "indexPrice"),
        ("Best bid", "best_bid"),
        ("Best ask", "best_ask"),
        ("24h high", "high_24h"),
        ("24h low", "low_24h"),
        ("24h change %", "priceChangePercent"),
        ("24h volume", "volume_24h"),
    ]
    return [f"- {label}: {ticker[key]}" for label, key in fields if ticker.get(key) not in (None, "")]


def _kline_lines(timeframe: str, summary: "KlineSummary") -> List[str]:
    if not summary.count:
        return [f"### {timeframe}", "- No candles returned."]
    lines = [
        f"### {timeframe} ({summary.count} candles)",
        f"- Close: {_fmt(summary.last_close)}  Change: {_fmt(summary.change_pct)}%",
        f"- Range: high {_fmt(summary.high)} / low {_fmt(summary.low)}",
        f"- MACD: {_fmt(summary.macd)}  signal {_fmt(summary.macd_signal)}  hist {_fmt(summary.macd_hist)}",
        f"- RSI(14): {_fmt(summary.rsi)}  Realized vol: {_fmt(summary.realized_volatility, 4)}",
        f"- Volume: total {_fmt(summary.volume_sum)}  avg {_fmt(summary.volume_avg)}",
        "- Recent candles:",
    ]
    for candle in summary.recent:
        lines.append(
            f"  - {candle['time']} O:{candle['open']} H:{candle['high']} "
            f"L:{candle['low']} C:{candle['close']} V:{candle['volume']}"
        )
    return lines


def _orderbook_lines(summary: "OrderBookSummary") -> List[str]:
    if summary.best_bid is None or summary.best_ask is None:
        return ["- No depth data."]
    return [
        f"- Best bid {_fmt(summary.best_bid)} / best ask {_fmt(summary.best_ask)}",
        f"- Spread: {_fmt(summary.spread)} ({_fmt(summary.spread_bps)} bps)",
        f"- Bid volume {_fmt(summary.bid_volume, 4)} / ask volume {_fmt(summary.ask_volume, 4)}",
        f"- Imbalance: {_fmt(summary.imbalance, 4)} (positive = bid heavy)",
    ]


def _position_lines(positions: List[Dict[str, Any]]) -> List[str]:
    lines = []
    for position in positions[:10]:
        lines.append(
            f"- {str(position.get('side', 'n/a')).upper()} size={position.get('size', 'n/a')} "
            f"leverage={position.get('leverage', 'n/a')}x open_value={position.get('open_value', 'n/a')} "
            f"unrealizedPnl={position.get('unrealizePnl', 'n/a')} "
            f"margin_mode={position.get('margin_mode', 'n/a')}"
        )
    if len(positions) > 10:
        lines.append(f"- ... and {len(positions) - 10} more positions.")
    return lines


def _fmt(value: float | None, digits: int = 2) -> str:
    if value is None:
        return "n/a"
    return f"{value:.{digits}f}"
