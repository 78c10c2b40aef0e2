"""
Command-line helper for one-off WEEX contract calls.

Usage examples:
    python scripts/weex_demo_trade.py time
    python scripts/weex_demo_trade.py contracts --symbol cmt_btcusdt

    python scripts/weex_demo_trade.py place \
        --symbol cmt_btcusdt --type 2 --size 0.001 --market

    python scripts/weex_demo_trade.py place \
        --symbol cmt_btcusdt --type 1 --size 0.001 --price 60000

    python scripts/weex_demo_trade.py cancel --order-id 123456789012345678

    python scripts/weex_demo_trade.py leverage --symbol cmt_btcusdt --leverage 10
    python scripts/weex_demo_trade.py hold-mode --symbol cmt_btcusdt --margin-mode 1 --separated-mode 1
    python scripts/weex_demo_trade.py positions

Environment variables (not needed for ``time`` or ``contracts``):
    WEEX_API_KEY
    WEEX_SECRET_KEY
    WEEX_PASSPHRASE
    WEEX_BASE_URL (optional)
"""

from __future__ import annotations

import argparse
import json
import os
import sys
import time
from pathlib import Path

# Ensure repository root is importable when executed as a script.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from exchanges.base_client import ExchangeCredentials  # noqa: E402
from exchanges.weex.client import WeexClient, WeexClientError  # noqa: E402
from models.schemas import ORDER_TYPES  # noqa: E402

PUBLIC_COMMANDS = {"time", "contracts"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="WEEX Contract Trade Helper")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("time", help="Print WEEX server time (no credentials needed)")

    contracts_parser = subparsers.add_parser("contracts", help="Show contract specifications (no credentials needed)")
    contracts_parser.add_argument("--symbol", help="Limit to one contract, e.g. cmt_btcusdt")

    place_parser = subparsers.add_parser("place", help="Submit an order to WEEX")
    place_parser.add_argument("--symbol", required=True, help="WEEX contract symbol, e.g. cmt_btcusdt")
    place_parser.add_argument(
        "--type",
        required=True,
        choices=sorted(ORDER_TYPES),
        help="1 open long, 2 open short, 3 close long, 4 close short",
    )
    place_parser.add_argument("--size", required=True, help="Order size in contract units")
    place_parser.add_argument("--price", help="Limit price (required unless --market)")
    place_parser.add_argument("--market", action="store_true", help="Submit at market price")
    place_parser.add_argument("--client-oid", help="Optional client order id")
    place_parser.add_argument("--margin-mode", type=int, default=1, choices=[1, 3], help="1 cross, 3 isolated")

    cancel_parser = subparsers.add_parser("cancel", help="Cancel a WEEX order")
    cancel_parser.add_argument("--order-id", required=True, help="WEEX order id")

    leverage_parser = subparsers.add_parser("leverage", help="Set leverage for a symbol")
    leverage_parser.add_argument("--symbol", required=True)
    leverage_parser.add_argument("--leverage", required=True, help="Long (and cross) leverage")
    leverage_parser.add_argument("--short-leverage", help="Short leverage for isolated mode")
    leverage_parser.add_argument("--margin-mode", type=int, default=1, choices=[1, 3])

    hold_parser = subparsers.add_parser("hold-mode", help="Switch margin / position mode")
    hold_parser.add_argument("--symbol", required=True)
    hold_parser.add_argument("--margin-mode", type=int, default=1, choices=[1, 3])
    hold_parser.add_argument("--separated-mode", type=int, default=1, choices=[1, 2])

    subparsers.add_parser("positions", help="List open positions")
    return parser


def build_order_payload(args: argparse.Namespace) -> dict:
    if not args.market and not args.price:
        raise ValueError("--price is required for limit orders (or pass --market)")
    return {
        "symbol": args.symbol,
        "client_oid": args.client_oid or f"manual_{args.type}_{int(time.time() * 1000)}",
        "size": args.size,
        "type": args.type,
        "order_type": "0",
        "match_price": "1" if args.market else "0",
        "price": "" if args.market else args.price,
        "marginMode": args.margin_mode,
    }


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.command in PUBLIC_COMMANDS:
        credentials = ExchangeCredentials()
    else:
        credentials = ExchangeCredentials(
            api_key=_env_or_exit("WEEX_API_KEY"),
            api_secret=_env_or_exit("WEEX_SECRET_KEY"),
            passphrase=_env_or_exit("WEEX_PASSPHRASE"),
        )

    client = WeexClient(credentials, base_url=os.environ.get("WEEX_BASE_URL") or None)
    try:
        if args.command == "time":
            response = client.get_server_time()
        elif args.command == "contracts":
            response = client.get_contracts(args.symbol)
        elif args.command == "place":
            response = client.place_order(build_order_payload(args))
        elif args.command == "cancel":
            response = client.cancel_order(args.order_id)
        elif args.command == "leverage":
            response = client.set_leverage(
                args.symbol,
                long_leverage=args.leverage,
                short_leverage=args.short_leverage,
                margin_mode=args.margin_mode,
            )
        elif args.command == "hold-mode":
            response = client.change_hold_mode(
                args.symbol,
                margin_mode=args.margin_mode,
                separated_mode=args.separated_mode,
            )
        else:  # positions
            response = client.get_all_positions()
    except (WeexClientError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        client.close()

    print(json.dumps(response, indent=2, ensure_ascii=False))


def _env_or_exit(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        print(f"Environment variable {name} is required", file=sys.stderr)
        sys.exit(2)
    return value


if __name__ == "__main__":
    main()
