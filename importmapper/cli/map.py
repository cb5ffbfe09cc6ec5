"""Map command implementation."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from importmapper.cli.common import emit_json, load_config
from importmapper.errors import ImportMapperError
from importmapper.export.json import export_import_map
from importmapper.importmap.builder import build_import_map
from importmapper.importmap.utils import flatten_scopes, rebase
from importmapper.packages.graph import load_dependency_graph

logger = logging.getLogger("importmapper.cli.map")


def map_command(args) -> int:
    """Build the full import map of an installed project.

    Args:
        args: Parsed command-line arguments containing:
            - project: Project directory holding jspm.json
            - output: Output file (optional, prints when omitted)
            - map_base: Directory map values are relative to (optional)
            - absolute: Emit '/'-rooted values relative to map_base
            - flatten: Fold scopes into top-level imports

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    try:
        config = load_config(args)
        project_dir = Path(args.project).expanduser().resolve()
        map_base = Path(args.map_base).expanduser().resolve() if args.map_base else project_dir

        logger.info("Building import map for %s", project_dir)
        graph = load_dependency_graph(project_dir)
        import_map = asyncio.run(
            build_import_map(graph, project_dir, config=config, map_base=map_base)
        )

        if getattr(args, "absolute", False):
            import_map = rebase(import_map, str(map_base), str(map_base), absolute=True)
        if getattr(args, "flatten", False):
            import_map = flatten_scopes(import_map)

        if args.output:
            export_import_map(import_map, Path(args.output))
        else:
            emit_json(import_map.to_dict(), None)
        return 0

    except ImportMapperError as e:
        logger.error("%s", e)
        return 1
