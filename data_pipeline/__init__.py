"""
Market snapshot collection and feature engineering for the trading cycle.
"""

from .collector import MarketCollector, MarketSnapshot  # noqa: F401
from .indicators import IndicatorCalculator  # noqa: F401
