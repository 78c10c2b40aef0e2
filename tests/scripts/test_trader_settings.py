import json

import pytest

from scripts import trader_settings
from services.settings import load_settings
from services.storage.settings_store import SettingsStore


def test_set_merges_overrides_read_by_load_settings(tmp_path, capsys):
    store_path = tmp_path / "settings.json"

    assert trader_settings.main(["--store", str(store_path), "set", "symbol=CMT_ETHUSDT"]) == 0
    capsys.readouterr()
    assert trader_settings.main(["--store", str(store_path), "set", "interval_seconds=900"]) == 0

    assert json.loads(capsys.readouterr().out) == {"symbol": "CMT_ETHUSDT", "interval_seconds": "900"}
    assert SettingsStore(store_path).namespace("trader") == {"symbol": "CMT_ETHUSDT", "interval_seconds": "900"}
    settings = load_settings({"TRADER_OFFLINE": "1"}, store_path=store_path)
    assert settings.symbol == "cmt_ethusdt"
    assert settings.interval_seconds == 900


@pytest.mark.parametrize("pair", ["api_key=secret", "symbol", "=cmt_btcusdt"])
def test_set_rejects_unknown_or_malformed_pairs(tmp_path, capsys, pair):
    store_path = tmp_path / "settings.json"

    assert trader_settings.main(["--store", str(store_path), "set", pair]) == 1

    assert "Error:" in capsys.readouterr().err
    assert not store_path.exists()


def test_prompt_from_file_is_saved_and_shown(tmp_path, capsys):
    source = tmp_path / "strategy.md"
    source.write_text("  Only trade breakouts.\n", encoding="utf-8")
    prompt_path = tmp_path / "state" / "prompt.md"
    args = ["--store", str(tmp_path / "settings.json"), "--prompt-path", str(prompt_path)]

    assert trader_settings.main([*args, "prompt", "--file", str(source)]) == 0
    assert prompt_path.read_text(encoding="utf-8") == "Only trade breakouts."

    capsys.readouterr()
    assert trader_settings.main([*args, "show"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("{}")
    assert out.rstrip().endswith("Only trade breakouts.")


def test_prompt_from_missing_file_fails(tmp_path, capsys):
    assert trader_settings.main(["--prompt-path", str(tmp_path / "p.md"), "prompt", "--file", str(tmp_path / "nope.md")]) == 1
    assert "Error:" in capsys.readouterr().err
