"""
Default configuration for the WEEX AI trader.

Secrets (API keys, passphrases) never live here; they are read from the
environment by ``services.settings.load_settings``.
"""

# WEEX contract REST endpoint.
WEEX_BASE_URL = "https://api-contract.weex.com"
WEEX_LOCALE = "en-US"
WEEX_TIMEOUT_SECONDS = 10.0

# Traded perpetual pair (WEEX contract symbol).
TRADING_SYMBOL = "cmt_btcusdt"

# Position settings used when submitting orders: 1 = cross margin, 1 = combined positions.
MARGIN_MODE = 1
SEPARATED_MODE = 1

# Decision provider defaults ("openrouter" or "deepseek").
DECISION_PROVIDER = "openrouter"
DECISION_MODEL = "deepseek/deepseek-r1"

# Market snapshot shape.
KLINE_TIMEFRAMES = ["5m", "15m", "1h"]
KLINE_LIMIT = 48
ORDERBOOK_DEPTH = 15

# Scheduler defaults (seconds).
CYCLE_INTERVAL_SECONDS = 300
SUCCESS_COOLDOWN_SECONDS = 10
FAILURE_COOLDOWN_SECONDS = 60
COUNTDOWN_LOG_INTERVAL_SECONDS = 60

# Per-cycle artifact directory.
ARTIFACT_DIR = "data/cycles"

# Audit log stage label reported to WEEX.
AUDIT_STAGE = "live"
