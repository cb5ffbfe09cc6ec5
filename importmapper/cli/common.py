"""Helpers shared by CLI commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from rich.console import Console

from importmapper.config import Environment, MapperConfig, load_mapper_config
from importmapper.importmap.model import ImportMap, read_import_map

logger = logging.getLogger("importmapper.cli.common")


def load_config(args) -> MapperConfig:
    """Load ``--config`` and apply the environment flags on top of it."""
    config = load_mapper_config(getattr(args, "config", None))

    node = getattr(args, "node", False)
    production = getattr(args, "production", False)
    if node or production:
        env = config.env
        config.env = Environment(
            browser=None if node else env.browser,
            node=node or env.node,
            production=production or env.production,
            dev=env.dev,
            conditions=dict(env.conditions),
        )
    if getattr(args, "relative_fallback", False):
        config.relative_fallback = True
    return config


def load_map(args) -> tuple[ImportMap, Path]:
    """Read ``--map`` and return it with its base directory."""
    map_path = Path(args.map)
    import_map = read_import_map(map_path)
    base = Path(args.base) if getattr(args, "base", None) else map_path.parent
    return import_map, base.resolve()


def emit_json(data: Any, output: Optional[str], console: Optional[Console] = None) -> None:
    """Write JSON to ``output``, or pretty-print it when no output is given."""
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        logger.info("Wrote %s", path)
        return
    (console or Console()).print_json(data=data)
