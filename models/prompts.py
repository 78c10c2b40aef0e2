"""
Utilities for loading the trading strategy prompt and formatting model input.
"""

from __future__ import annotations

from pathlib import Path
from typing import Final

PROMPT_TEMPLATE_PATH: Final = Path("data/state/trading_prompt.md")
DEFAULT_STRATEGY_PROMPT: Final = (
    "You are a disciplined crypto derivatives trader managing a single WEEX "
    "USDT-margined perpetual position. The system re-evaluates every 5 minutes, "
    "so do not place take-profit or stop-loss orders; manage exposure by opening, "
    "adding to or closing positions instead.\n"
    "Prefer HOLD when the market report shows no clear edge. Never risk more than "
    "the account can sustain and keep order sizes consistent with the contract's "
    "minimum size and step.\n"
    "Order type codes: 1 = open long, 2 = open short, 3 = close long, 4 = close short.\n"
)

FORMAT_INSTRUCTIONS: Final = """\
Respond with a single JSON object and nothing else, matching exactly:
{
  "analysis": {
    "marketTrend": "2-3 sentences on the market trend",
    "positionStatus": "2-3 sentences on the open positions",
    "riskAssessment": "1-2 sentences on account risk"
  },
  "signal": {
    "action": "HOLD | OPEN_LONG | OPEN_SHORT | CLOSE_LONG | CLOSE_SHORT | ADD_LONG | ADD_SHORT",
    "confidence": "HIGH | MEDIUM | LOW",
    "reasoning": "2-3 sentences"
  },
  "execution": {
    "hasOrder": true,
    "orders": [
      {
        "type": "1 | 2 | 3 | 4",
        "typeDescription": "e.g. 1-open long",
        "size": "order size as a string, e.g. \\"0.0050\\"",
        "priceType": "MARKET | LIMIT",
        "price": "limit price, or the current price for MARKET orders, as a string",
        "reasoning": "why this order"
      }
    ]
  },
  "riskWarning": "one sentence"
}
Rules:
1. Every field is required.
2. Enumerated fields must match one of the listed values exactly.
3. size and price are strings holding positive numbers.
4. When hasOrder is false, orders must be an empty list; when true, it must not be empty.
5. No trailing commas, comments or Markdown fences.
"""


def get_strategy_prompt(path: Path | None = None) -> str:
    """Return the persisted strategy prompt or the built-in default."""
    try:
        text = (path or PROMPT_TEMPLATE_PATH).read_text(encoding="utf-8")
    except FileNotFoundError:
        return DEFAULT_STRATEGY_PROMPT
    return text if text.strip() else DEFAULT_STRATEGY_PROMPT


def save_strategy_prompt(value: str, path: Path | None = None) -> str:
    """Persist a new strategy prompt and return the sanitized value."""
    target = path or PROMPT_TEMPLATE_PATH
    sanitized = value.strip() or DEFAULT_STRATEGY_PROMPT
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(sanitized, encoding="utf-8")
    return sanitized


def build_prompt(market_report: str, *, strategy: str | None = None) -> str:
    """Combine strategy, market report and output format into one user prompt."""
    strategy_text = strategy if strategy is not None else get_strategy_prompt()
    return (
        f"{strategy_text.rstrip()}\n\n"
        "---\n\n"
        f"{market_report.strip()}\n\n"
        "---\n\n"
        f"{FORMAT_INSTRUCTIONS}"
    )
