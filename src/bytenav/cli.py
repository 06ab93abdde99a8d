from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace

import yaml
from rich.console import Console
from rich.text import Text

from bytenav.core.config import ConfigError, NavigatorConfig, load_config_file
from bytenav.core.frontmatter import FrontMatterError, read_front_matter
from bytenav.core.navigator import Navigator


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bytenav", description="Search and walk lines of large files without loading them"
    )
    parser.add_argument("path", help="Path to the file")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--find", metavar="PATTERN", help="Print offsets of PATTERN")
    mode.add_argument("--lines", action="store_true", help="Print lines")
    mode.add_argument("--front-matter", action="store_true", help="Print front matter and content")
    parser.add_argument("--last", action="store_true", help="With --find: walk back from the end")
    parser.add_argument("--reverse", action="store_true", help="With --lines: last line first")
    parser.add_argument("--max", type=int, default=None, metavar="N", help="Stop after N results")
    parser.add_argument("--separator", help="Line separator (default: newline)")
    parser.add_argument("--encoding", help="Text encoding (default: utf-8)")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _unescape(value: str) -> str:
    """Expand backslash escapes such as `\\r\\n`; other characters pass through unchanged."""
    return value.encode("latin-1", "backslashreplace").decode("unicode_escape")


async def _print_matches(
    nav: Navigator, console: Console, pattern: str, last: bool, limit: int | None
) -> None:
    cursor = await (nav.search_last(pattern) if last else nav.search_first(pattern))
    count = 0
    while cursor is not None and (limit is None or count < limit):
        meta = cursor.meta
        console.print(f"{meta.start} {meta.end}", highlight=False)
        count += 1
        cursor = await (cursor.prev() if last else cursor.next())


async def _print_lines(nav: Navigator, console: Console, reverse: bool, limit: int | None) -> None:
    cursor = await (nav.last_line() if reverse else nav.first_line())
    count = 0
    while limit is None or count < limit:
        console.print(Text(await cursor.read(nav.encoding, errors="replace")))
        count += 1
        if await (cursor.prev() if reverse else cursor.next()) is None:
            break


async def _print_front_matter(nav: Navigator, console: Console) -> None:
    fm = await read_front_matter(nav, errors="replace")
    if fm.data:
        console.print(Text(yaml.safe_dump(fm.data, sort_keys=False).rstrip("\n")))
        console.print(Text("---"))
    console.print(Text(fm.content))


async def _run(args: argparse.Namespace, config: NavigatorConfig, console: Console) -> None:
    async with Navigator.open(args.path, config=config) as nav:
        if args.find is not None:
            await _print_matches(nav, console, args.find, args.last, args.max)
        elif args.lines:
            await _print_lines(nav, console, args.reverse, args.max)
        else:
            await _print_front_matter(nav, console)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not os.path.exists(args.path):
        print(f"bytenav: file not found: {args.path}", file=sys.stderr)
        return 2

    try:
        config = load_config_file(args.config) if args.config else NavigatorConfig()
    except ConfigError as e:
        print(f"bytenav: {e}", file=sys.stderr)
        return 1
    if args.separator:
        config = replace(config, separator=_unescape(args.separator))
    if args.encoding:
        config = replace(config, encoding=args.encoding)

    if args.find is None and not args.lines and not args.front_matter:
        from bytenav.app import BytenavApp

        BytenavApp(args.path, config=config).run()
        return 0

    console = Console(soft_wrap=True)
    try:
        asyncio.run(_run(args, config, console))
    except FrontMatterError as e:
        print(f"bytenav: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
