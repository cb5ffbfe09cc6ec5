"""Main CLI entry point for importmapper.

Provides commands: map, trace, filter
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from importmapper.cli.filter import filter_command
from importmapper.cli.map import map_command
from importmapper.cli.trace import trace_command

logger = logging.getLogger("importmapper.cli")


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Setup logging configuration with Rich integration.

    Args:
        verbose: Enable verbose logging.
        console: Rich Console instance for coordinated output (optional).
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        log_time_format="[%H:%M:%S]",
    )

    logging.basicConfig(
        level=level,
        format="[%(name)s] [%(levelname)s] %(message)s",
        handlers=[handler],
    )


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--config",
        help=(
            "Optional mapper configuration. Can be a path to a TOML/JSON "
            "file or an inline TOML/JSON string. When omitted, built-in "
            "defaults are used."
        ),
    )


def _add_trace_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "modules",
        nargs="+",
        help="Entry module specifiers, resolved from the map base",
    )
    parser.add_argument(
        "-m",
        "--map",
        required=True,
        help="Import map JSON file",
    )
    parser.add_argument(
        "--base",
        help="Directory the import map is relative to (default: the map file's directory)",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output file (prints to stdout when omitted)",
    )
    parser.add_argument(
        "--relative-fallback",
        action="store_true",
        help="Resolve unmapped entry specifiers as files next to the map base",
    )
    _add_config_argument(parser)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="importmapper",
        description="importmapper - Import map generation and module tracing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Map command
    map_parser = subparsers.add_parser(
        "map",
        help="Build the full import map of an installed project",
    )
    map_parser.add_argument(
        "project",
        nargs="?",
        default=".",
        help="Project directory containing jspm.json (default: current directory)",
    )
    map_parser.add_argument(
        "-o",
        "--output",
        help="Output import map file (prints to stdout when omitted)",
    )
    map_parser.add_argument(
        "--map-base",
        help="Directory the map values are relative to (default: the project directory)",
    )
    map_parser.add_argument(
        "--absolute",
        action="store_true",
        help="Emit '/'-rooted paths relative to the map base",
    )
    map_parser.add_argument(
        "--flatten",
        action="store_true",
        help="Fold all scopes into the top-level imports (fails on conflicts)",
    )
    map_parser.add_argument(
        "--node",
        action="store_true",
        help="Build for Node.js instead of the browser",
    )
    map_parser.add_argument(
        "--production",
        action="store_true",
        help="Production build: skip development-only dependencies",
    )
    _add_config_argument(map_parser)

    # Trace command
    trace_parser = subparsers.add_parser(
        "trace",
        help="Trace entry modules through an import map",
    )
    _add_trace_arguments(trace_parser)
    trace_parser.add_argument(
        "-f",
        "--format",
        choices=["json", "graph-json", "dot"],
        default="json",
        help="Output format (default: json; graph-json and dot require --output)",
    )

    # Filter command
    filter_parser = subparsers.add_parser(
        "filter",
        help="Reduce an import map to what the entry modules need",
    )
    _add_trace_arguments(filter_parser)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.command == "map":
        return map_command(args)
    elif args.command == "trace":
        return trace_command(args)
    elif args.command == "filter":
        return filter_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
