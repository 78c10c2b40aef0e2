"""
Inspect and edit the persisted trader overrides and strategy prompt.

Usage examples:
    python scripts/trader_settings.py show
    python scripts/trader_settings.py set symbol=cmt_ethusdt model=deepseek-chat
    python scripts/trader_settings.py prompt --file my_strategy.md
    python scripts/trader_settings.py prompt --text "Only trade breakouts."

Changes take effect on the next start of ``run_trader.py``. Environment
variables still win over anything stored here.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Ensure repository root is importable when executed as a script.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from models.prompts import get_strategy_prompt, save_strategy_prompt  # noqa: E402
from services.storage.settings_store import TRADER_KEYS, TRADER_NAMESPACE, SettingsStore  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Trader settings helper")
    parser.add_argument("--store", type=Path, help="Settings store file (default data/settings_store.json)")
    parser.add_argument("--prompt-path", type=Path, help="Strategy prompt file (default data/state/trading_prompt.md)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("show", help="Print stored trader overrides and the strategy prompt")

    set_parser = subparsers.add_parser("set", help="Store one or more trader overrides")
    set_parser.add_argument("pairs", nargs="+", metavar="KEY=VALUE", help=f"Keys: {', '.join(sorted(TRADER_KEYS))}")

    prompt_parser = subparsers.add_parser("prompt", help="Replace the strategy prompt")
    source = prompt_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Read the new prompt from a file")
    source.add_argument("--text", help="New prompt text")
    return parser


def parse_pairs(pairs: list[str]) -> dict:
    values = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        if key not in TRADER_KEYS:
            raise ValueError(f"Unsupported trader setting {key!r}. Expected one of {sorted(TRADER_KEYS)}")
        values[key] = value.strip()
    return values


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    store = SettingsStore(args.store)

    try:
        if args.command == "show":
            print(json.dumps(store.namespace(TRADER_NAMESPACE), indent=2, ensure_ascii=False))
            print("---")
            print(get_strategy_prompt(args.prompt_path))
        elif args.command == "set":
            merged = store.update(TRADER_NAMESPACE, parse_pairs(args.pairs))
            print(json.dumps(merged, indent=2, ensure_ascii=False))
        else:  # prompt
            text = args.file.read_text(encoding="utf-8") if args.file else args.text
            saved = save_strategy_prompt(text, args.prompt_path)
            print(f"Saved strategy prompt ({len(saved)} characters)")
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
