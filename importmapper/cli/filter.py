"""Filter command implementation."""

from __future__ import annotations

import asyncio
import logging

from importmapper.cli.common import emit_json, load_config, load_map
from importmapper.errors import ImportMapperError
from importmapper.importmap.resolver import filter_map

logger = logging.getLogger("importmapper.cli.filter")


def filter_command(args) -> int:
    """Write the minimal import map needed by the given entry modules."""
    try:
        config = load_config(args)
        import_map, base = load_map(args)
        filtered = asyncio.run(
            filter_map(import_map, base, args.modules, relative_fallback=config.relative_fallback)
        )
        emit_json(filtered.to_dict(), args.output)
        return 0

    except ImportMapperError as e:
        logger.error("%s", e)
        return 1
