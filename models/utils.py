"""
Utility helpers used across model adapters.
"""

from __future__ import annotations

from typing import Any, Dict


def offline_decision(market_report: str) -> Dict[str, Any]:
    """
    Produce a reproducible HOLD decision when no remote model is configured.

    This is useful for local development, dry runs and unit tests.
    """
    lines = [line.strip() for line in market_report.splitlines() if line.strip()]
    headline = lines[0] if lines else "No market report supplied."
    return {
        "analysis": {
            "marketTrend": f"Offline mode; market report headline: {headline[:120]}",
            "positionStatus": "Positions were not evaluated in offline mode.",
            "riskAssessment": "No exposure change is proposed.",
        },
        "signal": {
            "action": "HOLD",
            "confidence": "LOW",
            "reasoning": "Deterministic fallback used because no model API key is configured.",
        },
        "execution": {"hasOrder": False, "orders": []},
        "riskWarning": "Offline decision; not based on model analysis.",
    }
