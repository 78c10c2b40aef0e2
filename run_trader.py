"""
Process entry point for the WEEX AI trading loop.

    python run_trader.py                # startup dry cycle, then every 5 minutes
    python run_trader.py --once --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.config
import sys
from datetime import timedelta

import config
from data_pipeline.collector import MarketCollector
from exchanges.weex.client import WeexClient
from execution.audit import AuditReporter
from execution.order_executor import OrderExecutor
from models.bootstrap import build_default_registry
from services.jobs.cadence import TradingDriver
from services.jobs.cycle import TradingCycle
from services.settings import ConfigError, TraderSettings, describe, load_settings
from services.storage.artifacts import ArtifactStore

logger = logging.getLogger("run_trader")

LOG_FORMAT = "%(asctime)s | %(levelname)s %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def build_logging_config(level: str = "INFO") -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT, "datefmt": LOG_DATEFMT},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {"handlers": ["default"], "level": level.upper()},
        "loggers": {
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
        },
    }


async def run(settings: TraderSettings, *, once: bool = False, dry_run: bool = False) -> int:
    client = WeexClient(
        settings.credentials,
        base_url=settings.base_url,
        timeout=config.WEEX_TIMEOUT_SECONDS,
        locale=config.WEEX_LOCALE,
    )
    registry = build_default_registry(settings)
    adapter = registry.select(settings.provider)
    audit = AuditReporter(client, model_id=settings.model, stage=settings.audit_stage)
    cycle = TradingCycle(
        collector=MarketCollector(
            client,
            settings.symbol,
            timeframes=settings.timeframes,
            candle_limit=settings.kline_limit,
            depth_limit=settings.depth_limit,
        ),
        adapter=adapter,
        executor=OrderExecutor(
            client,
            settings.symbol,
            margin_mode=settings.margin_mode,
            separated_mode=settings.separated_mode,
        ),
        store=ArtifactStore(settings.artifact_dir),
        audit=audit,
    )
    try:
        if once:
            result = await cycle.run(dry_run=dry_run)
            logger.info("Cycle %s finished with status %s", result.cycle_id, result.status.value)
            return 0
        driver = TradingDriver(
            cycle,
            interval=timedelta(seconds=settings.interval_seconds),
            success_cooldown=settings.success_cooldown,
            failure_cooldown=settings.failure_cooldown,
            countdown_interval=settings.countdown_interval or None,
        )
        await driver.run_forever()
        return 0
    finally:
        await audit.drain()
        await registry.aclose()
        client.close()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the LLM-driven WEEX futures trading loop.")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single cycle immediately and exit instead of looping on 5-minute boundaries.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="With --once: record the decision but submit no orders.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Root log level (default INFO).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.config.dictConfig(build_logging_config(args.log_level))
    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    logger.info("Starting trader with %s", describe(settings))
    try:
        return asyncio.run(run(settings, once=args.once, dry_run=args.dry_run))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
