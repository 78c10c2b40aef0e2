"""
Runtime settings assembled from config defaults, the settings store and the
process environment (highest precedence).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import config
from exchanges.base_client import ExchangeCredentials
from services.storage.settings_store import SettingsStore

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openrouter", "deepseek")
_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or malformed."""


@dataclass(slots=True)
class TraderSettings:
    """Everything the trading driver needs to start."""

    credentials: ExchangeCredentials
    base_url: str = config.WEEX_BASE_URL
    symbol: str = config.TRADING_SYMBOL
    provider: str = config.DECISION_PROVIDER
    model: str = config.DECISION_MODEL
    openrouter_api_key: str = ""
    deepseek_api_key: str = ""
    offline: bool = False
    artifact_dir: Path = Path(config.ARTIFACT_DIR)
    prompt_path: Optional[Path] = None
    interval_seconds: int = config.CYCLE_INTERVAL_SECONDS
    success_cooldown: float = config.SUCCESS_COOLDOWN_SECONDS
    failure_cooldown: float = config.FAILURE_COOLDOWN_SECONDS
    countdown_interval: float = config.COUNTDOWN_LOG_INTERVAL_SECONDS
    margin_mode: int = config.MARGIN_MODE
    separated_mode: int = config.SEPARATED_MODE
    timeframes: List[str] = field(default_factory=lambda: list(config.KLINE_TIMEFRAMES))
    kline_limit: int = config.KLINE_LIMIT
    depth_limit: int = config.ORDERBOOK_DEPTH
    audit_stage: str = config.AUDIT_STAGE

    @property
    def decision_api_key(self) -> str:
        return self.openrouter_api_key if self.provider == "openrouter" else self.deepseek_api_key


def load_settings(
    env: Mapping[str, str] | None = None,
    *,
    store_path: Path | None = None,
) -> TraderSettings:
    """
    Build `TraderSettings` or raise ConfigError.

    Missing WEEX credentials are tolerated (public endpoints still work and
    private calls fail when made); a missing decision provider key is fatal
    unless ``TRADER_OFFLINE`` is set.
    """
    environ = os.environ if env is None else env
    overrides = SettingsStore(store_path).trader_overrides()

    def pick(env_key: str, store_key: str, default: Any) -> Any:
        value = environ.get(env_key)
        if value not in (None, ""):
            return value
        if overrides.get(store_key) not in (None, ""):
            return overrides[store_key]
        return default

    credentials = ExchangeCredentials(
        api_key=environ.get("WEEX_API_KEY", ""),
        api_secret=environ.get("WEEX_SECRET_KEY", ""),
        passphrase=environ.get("WEEX_PASSPHRASE", ""),
    )
    if not credentials.complete:
        logger.warning("WEEX credentials incomplete; only public market endpoints will work.")

    provider = str(pick("TRADER_PROVIDER", "provider", config.DECISION_PROVIDER)).strip().lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigError(f"Unsupported decision provider '{provider}'. Expected one of {SUPPORTED_PROVIDERS}.")

    offline = str(environ.get("TRADER_OFFLINE", "")).strip().lower() in _TRUTHY
    default_model = config.DECISION_MODEL if provider == "openrouter" else "deepseek-chat"
    prompt_path = environ.get("TRADER_PROMPT_PATH")

    settings = TraderSettings(
        credentials=credentials,
        base_url=str(pick("WEEX_BASE_URL", "base_url", config.WEEX_BASE_URL)),
        symbol=str(pick("TRADER_SYMBOL", "symbol", config.TRADING_SYMBOL)).strip().lower(),
        provider=provider,
        model=str(pick("TRADER_MODEL", "model", default_model)),
        openrouter_api_key=environ.get("OPENROUTER_API_KEY", ""),
        deepseek_api_key=environ.get("DEEPSEEK_API_KEY", ""),
        offline=offline,
        artifact_dir=Path(pick("TRADER_ARTIFACT_DIR", "artifact_dir", config.ARTIFACT_DIR)),
        prompt_path=Path(prompt_path) if prompt_path else None,
        interval_seconds=_as_int(pick("TRADER_INTERVAL_SECONDS", "interval_seconds", config.CYCLE_INTERVAL_SECONDS), "interval_seconds"),
        success_cooldown=_as_float(pick("TRADER_SUCCESS_COOLDOWN", "success_cooldown", config.SUCCESS_COOLDOWN_SECONDS), "success_cooldown"),
        failure_cooldown=_as_float(pick("TRADER_FAILURE_COOLDOWN", "failure_cooldown", config.FAILURE_COOLDOWN_SECONDS), "failure_cooldown"),
    )

    if not settings.symbol:
        raise ConfigError("Trading symbol must not be empty.")
    if settings.interval_seconds <= 0 or settings.interval_seconds % 60 or 86_400 % settings.interval_seconds:
        raise ConfigError(f"Cycle interval {settings.interval_seconds}s must be whole minutes and divide one day.")
    if settings.success_cooldown < 0 or settings.failure_cooldown < 0:
        raise ConfigError("Cooldowns must not be negative.")
    if not offline and not settings.decision_api_key:
        env_name = "OPENROUTER_API_KEY" if provider == "openrouter" else "DEEPSEEK_API_KEY"
        raise ConfigError(f"Environment variable {env_name} is required (or set TRADER_OFFLINE=1).")
    return settings


def describe(settings: TraderSettings) -> Dict[str, Any]:
    """Non-secret view of the settings for startup logging."""
    return {
        "base_url": settings.base_url,
        "symbol": settings.symbol,
        "provider": settings.provider,
        "model": settings.model,
        "offline": settings.offline,
        "weex_credentials": settings.credentials.complete,
        "artifact_dir": str(settings.artifact_dir),
        "interval_seconds": settings.interval_seconds,
    }


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc
