"""Command-line interface for richdoc.

The ``richdoc`` command works on markdown files through the same schema,
parser and serializer an editor uses:

format
    Parse markdown and write it back in normalized form
anchors
    List the headings of a document with their anchor ids
dump
    Write the parsed document as JSON

Input is read from a file or, with ``-``, from standard input.
"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

# src/richdoc/cli.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from richdoc import __version__
from richdoc.config import load_options
from richdoc.constants import DEPS_RICH_OUTPUT
from richdoc.exceptions import RichDocError
from richdoc.extensions.manager import ExtensionManager
from richdoc.logging_utils import configure_logging
from richdoc.plugins.anchors import HeadingInfo, get_headings
from richdoc.utils.decorators import requires_dependencies

if TYPE_CHECKING:
    from richdoc.model.node import Node

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_INPUT_ERROR = 3


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="richdoc",
        description="Normalize markdown, list heading anchors and dump documents",
    )
    parser.add_argument("--version", action="version", version=f"richdoc {__version__}")
    parser.add_argument("--config", help="Configuration file (.toml, .yaml, .json or pyproject.toml)")
    parser.add_argument("--no-config", action="store_true", help="Ignore discovered configuration files")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", help="Also write log messages to this file")
    parser.add_argument("--trace", action="store_true", help="Debug logging with timestamps and logger names")
    parser.add_argument(
        "--discover-extensions",
        action="store_true",
        help="Load extensions registered by installed packages",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    format_parser = subparsers.add_parser("format", help="Write normalized markdown")
    format_parser.add_argument("input", help="Markdown file, or - for stdin")
    format_parser.add_argument("-o", "--out", help="Output file (default: stdout)")
    format_parser.add_argument(
        "--check", action="store_true", help="Exit with status 1 when the input is not normalized"
    )

    anchors_parser = subparsers.add_parser("anchors", help="List headings with their anchor ids")
    anchors_parser.add_argument("input", help="Markdown file, or - for stdin")
    anchors_parser.add_argument("--rich", action="store_true", help="Show a rich table (requires 'rich')")
    anchors_parser.add_argument("--json", action="store_true", help="Write the outline as JSON")

    dump_parser = subparsers.add_parser("dump", help="Write the parsed document as JSON")
    dump_parser.add_argument("input", help="Markdown file, or - for stdin")
    dump_parser.add_argument("--indent", type=int, default=2, help="JSON indentation (default: 2)")

    return parser


def _setup_logging_level(parsed_args: argparse.Namespace) -> None:
    # --trace takes precedence over --log-level
    log_level = logging.DEBUG if parsed_args.trace else getattr(logging, parsed_args.log_level.upper())
    configure_logging(log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _write_output(text: str, destination: Optional[str]) -> None:
    if destination:
        Path(destination).write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)


def _build_manager(parsed_args: argparse.Namespace) -> ExtensionManager:
    if parsed_args.no_config:
        return ExtensionManager.default(discover=parsed_args.discover_extensions)
    loaded = load_options(parsed_args.config)
    if loaded.source is not None:
        logger.info(f"Using configuration from {loaded.source}")
    return ExtensionManager.default(
        loaded.editor,
        discover=parsed_args.discover_extensions,
        parser_options=loaded.parser,
        serializer_options=loaded.serializer,
    )


def _parse_input(manager: ExtensionManager, text: str) -> "Node":
    result = manager.parse_with_warnings(text)
    for warning in result.warnings:
        logger.warning(str(warning))
    return result.doc


def cmd_format(parsed_args: argparse.Namespace, manager: ExtensionManager) -> int:
    text = _read_input(parsed_args.input)
    output = manager.serialize(_parse_input(manager, text))
    if parsed_args.check:
        if output != text:
            print(f"{parsed_args.input} is not normalized", file=sys.stderr)
            return EXIT_ERROR
        return EXIT_SUCCESS
    _write_output(output, parsed_args.out)
    return EXIT_SUCCESS


@requires_dependencies("rich-output", DEPS_RICH_OUTPUT)
def _print_anchor_table(headings: list[HeadingInfo], title: str) -> None:
    from rich.console import Console
    from rich.table import Table

    table = Table(title=title)
    table.add_column("Level", style="cyan", justify="right")
    table.add_column("Anchor", style="yellow")
    table.add_column("Title", style="white")
    table.add_column("Pos", style="magenta", justify="right")
    for heading in headings:
        table.add_row(str(heading.level), f"#{heading.id}", heading.title, str(heading.pos))
    Console().print(table)


def cmd_anchors(parsed_args: argparse.Namespace, manager: ExtensionManager) -> int:
    doc = _parse_input(manager, _read_input(parsed_args.input))
    options = manager.options
    headings = get_headings(doc, separator=options.slug_separator, max_length=options.slug_max_length)

    if parsed_args.json:
        payload = [{"title": h.title, "level": h.level, "id": h.id, "pos": h.pos} for h in headings]
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    elif parsed_args.rich:
        _print_anchor_table(headings, f"Headings of {parsed_args.input}")
    else:
        for heading in headings:
            print(f"{'  ' * (heading.level - 1)}#{heading.id}\t{heading.title}")
    return EXIT_SUCCESS


def cmd_dump(parsed_args: argparse.Namespace, manager: ExtensionManager) -> int:
    doc = _parse_input(manager, _read_input(parsed_args.input))
    print(json.dumps(doc.to_json(), indent=parsed_args.indent or None, ensure_ascii=False))
    return EXIT_SUCCESS


COMMANDS = {
    "format": cmd_format,
    "anchors": cmd_anchors,
    "dump": cmd_dump,
}


def main(args: list[str] | None = None) -> int:
    """Run the ``richdoc`` command and return its exit code."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)
    _setup_logging_level(parsed_args)

    try:
        manager = _build_manager(parsed_args)
        return COMMANDS[parsed_args.command](parsed_args, manager)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except RichDocError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
