"""Command-line entry point: ``python -m collectr search zelda``."""

from __future__ import annotations

import argparse
import json
import sys

from collectr.config import get_config
from collectr.context import create_context
from collectr.errors import InvalidInputError
from collectr.logger import setup_logger


def _build_parser(default_limit: int) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="collectr",
        description="Search IGDB and RAWG for physical game releases.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Free-text search")
    search.add_argument("query")
    search.add_argument("--platform", default=None, help="Canonical platform (e.g. SNES, PS2)")
    search.add_argument("--limit", type=int, default=default_limit)
    search.add_argument("--offset", type=int, default=0)

    barcode = sub.add_parser("barcode", help="Exact UPC lookup")
    barcode.add_argument("code")

    game = sub.add_parser("get", help="Fetch one game by result id (e.g. igdb_1022)")
    game.add_argument("game_id")

    cfg = sub.add_parser("config", help="Read or write a config value")
    cfg.add_argument("key", help="Dot-separated key (e.g. providers.rawg_api_key)")
    cfg.add_argument("value", nargs="?", default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    config = get_config()
    setup_logger(config.data_dir / "logs", level=config.log_level)
    args = _build_parser(config.default_limit).parse_args(argv)

    if args.command == "config":
        if args.value is None:
            print(json.dumps(config.get(args.key), ensure_ascii=False, indent=2))
        else:
            config.set(args.key, args.value)
        return 0

    service = create_context(config).search_service
    try:
        if args.command == "search":
            results = service.search_games(args.query, args.platform, args.limit, args.offset)
        elif args.command == "barcode":
            results = service.search_by_barcode(args.code)
        else:
            game = service.get_game(args.game_id)
            results = [game] if game else []
    except InvalidInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(json.dumps([r.to_dict() for r in results], ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
