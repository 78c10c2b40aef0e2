import logging

import run_trader
from services.settings import ConfigError


def test_config_error_exits_with_status_2(mocker, caplog):
    mocker.patch("run_trader.logging.config.dictConfig")
    mocker.patch("run_trader.load_settings", side_effect=ConfigError("OPENROUTER_API_KEY is required"))
    run = mocker.patch("run_trader.run")

    with caplog.at_level(logging.ERROR):
        status = run_trader.main([])

    assert status == 2
    assert "OPENROUTER_API_KEY is required" in caplog.text
    run.assert_not_called()


def test_once_flags_are_forwarded(mocker):
    mocker.patch("run_trader.logging.config.dictConfig")
    settings = mocker.MagicMock()
    mocker.patch("run_trader.load_settings", return_value=settings)
    mocker.patch("run_trader.describe", return_value={})
    run = mocker.patch("run_trader.run", new=mocker.AsyncMock(return_value=0))

    status = run_trader.main(["--once", "--dry-run"])

    assert status == 0
    run.assert_awaited_once_with(settings, once=True, dry_run=True)


def test_logging_config_uses_project_format():
    config = run_trader.build_logging_config("debug")

    assert config["formatters"]["default"]["format"] == "%(asctime)s | %(levelname)s %(name)s | %(message)s"
    assert config["formatters"]["default"]["datefmt"] == "%Y-%m-%d %H:%M:%S"
    assert config["root"]["level"] == "DEBUG"
