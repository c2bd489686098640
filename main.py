"""Entry point: load config → run one tool request → print JSON to stdout."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from core.config import load_config
from core.errors import GatewayError
from tools.find_tool import FindTool
from tools.fs_tool import list_entries, read_file

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sandboxed filesystem gateway")
    sub = parser.add_subparsers(dest="command", required=True)

    find = sub.add_parser("find", help="search a directory tree")
    find.add_argument("base_path")
    find.add_argument("--recursive", action="store_true")
    find.add_argument("--type", dest="entry_type_filter", default="any",
                      choices=["file", "directory", "symlink", "any"])
    find.add_argument("--name", action="append", default=[], help="glob; repeatable")
    find.add_argument("--content", help="text (or regex with --regex) to look for")
    find.add_argument("--regex", action="store_true")
    find.add_argument("--case-sensitive", action="store_true")
    find.add_argument("--ext", action="append", default=None, help="limit --content to extension")
    find.add_argument("--max-results", type=int, default=None)
    find.add_argument("--max-depth", type=int, default=None)

    listing = sub.add_parser("list", help="list a directory")
    listing.add_argument("path")
    listing.add_argument("--depth", type=int, default=0)
    listing.add_argument("--sizes", action="store_true", help="total the size of each directory")

    read = sub.add_parser("read", help="print a text file")
    read.add_argument("path")
    return parser.parse_args(argv)


def build_find_params(args: argparse.Namespace) -> dict[str, Any]:
    criteria: list[dict[str, Any]] = [
        {"type": "name_pattern", "pattern": pattern} for pattern in args.name
    ]
    if args.content is not None:
        content: dict[str, Any] = {
            "type": "content_pattern",
            "pattern": args.content,
            "is_regex": args.regex,
            "case_sensitive": args.case_sensitive,
        }
        if args.ext:
            content["file_types_to_search"] = args.ext
        criteria.append(content)
    return {
        "base_path": args.base_path,
        "recursive": args.recursive,
        "entry_type_filter": args.entry_type_filter,
        "match_criteria": criteria,
        "max_results": args.max_results,
        "max_depth": args.max_depth,
    }


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config()
    except EnvironmentError as exc:
        logger.error("configuration error: %s", exc)
        sys.exit(1)
    logging.getLogger().setLevel(config.log_level)
    logger.info("config loaded: allowed=%s", ", ".join(config.allowed_paths))

    if args.command == "find":
        response = FindTool(config).run(build_find_params(args))
    else:
        try:
            if args.command == "list":
                results = list_entries(args.path, config, args.depth, calculate_size=args.sizes)
                response = {"tool_name": "list", "results": results}
            else:
                response = {"tool_name": "read", "content": read_file(args.path, config)}
        except GatewayError as exc:
            response = exc.to_result()

    json.dump(response, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 1 if response.get("status") == "error" else 0


if __name__ == "__main__":
    sys.exit(main())
