"""Trace command implementation."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from importmapper.cli.common import emit_json, load_config, load_map
from importmapper.errors import ImportMapperError
from importmapper.export.dot import export_trace_dot
from importmapper.export.json import export_trace_graph_json, export_trace_json
from importmapper.importmap.resolver import trace_modules

logger = logging.getLogger("importmapper.cli.trace")


def trace_command(args) -> int:
    """Trace entry modules through an import map.

    Args:
        args: Parsed command-line arguments containing:
            - modules: Entry module specifiers
            - map: Import map file
            - base: Directory the map is relative to (defaults to its folder)
            - output: Output file (optional for json)
            - format: json, graph-json or dot

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    try:
        config = load_config(args)
        import_map, base = load_map(args)
        trace = asyncio.run(
            trace_modules(
                import_map, base, args.modules, relative_fallback=config.relative_fallback
            )
        )

        export_format = getattr(args, "format", "json")
        if export_format == "json":
            if args.output:
                export_trace_json(trace, Path(args.output))
            else:
                emit_json(trace, None)
            return 0

        if not args.output:
            logger.error("--output is required for format %s", export_format)
            return 1
        if export_format == "graph-json":
            export_trace_graph_json(trace, Path(args.output))
            return 0
        if export_format == "dot":
            return 0 if export_trace_dot(trace, Path(args.output)) else 1

        logger.error("Unsupported export format: %s", export_format)
        return 1

    except ImportMapperError as e:
        logger.error("%s", e)
        return 1
