"""Helpers for loading mapper configuration from TOML/JSON sources.

``load_mapper_config`` accepts:

* None -> default MapperConfig
* dict -> MapperConfig.from_dict
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Union

from importmapper.config.schema import MapperConfig
from importmapper.errors import ConfigError

logger = logging.getLogger("importmapper.config.loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except (OSError, ValueError):
        return False


def _detect_format(text: str) -> str:
    return "json" if text.lstrip().startswith(("{", "[")) else "toml"


def _parse(text: str, fmt: str) -> Any:
    try:
        if fmt == "json":
            return json.loads(text)
        return tomllib.loads(text)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Invalid {fmt.upper()} configuration: {exc}") from exc


def load_mapper_config(source: ConfigSource) -> MapperConfig:
    """Load MapperConfig from various configuration sources.

    Args:
        source: One of:
            * None: returns MapperConfig.default()
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Returns:
        MapperConfig instance.

    Raises:
        ConfigError: If the source cannot be parsed or is not a mapping.
    """
    if source is None:
        logger.debug("No config source provided; using default MapperConfig")
        return MapperConfig.default()

    if isinstance(source, dict):
        logger.debug("Loading MapperConfig from provided dict")
        return MapperConfig.from_dict(source)

    if isinstance(source, (str, Path)):
        path = Path(source)
        if _is_file(path):
            text = path.read_text(encoding="utf-8")
            suffix = path.suffix.lower()
            if suffix in {".toml", ".tml"}:
                fmt = "toml"
            elif suffix == ".json":
                fmt = "json"
            else:
                fmt = _detect_format(text)
            logger.info("Loading configuration from file: %s (fmt=%s)", path, fmt)
        else:
            text = str(source)
            fmt = _detect_format(text)
            logger.info("Loading configuration from inline %s string", fmt)

        data = _parse(text, fmt)
        if not isinstance(data, dict):
            raise ConfigError("Top-level configuration must be a mapping/dict")
        return MapperConfig.from_dict(data)

    raise TypeError(f"Unsupported config source type: {type(source)!r}")


__all__ = ["ConfigSource", "load_mapper_config"]
