"""Per-package configuration reader.

Reads each installed package's ``package.json`` and resolves its
environment-conditioned ``map`` against the target ``Environment``.

A ``map`` value is either a string or a mapping of condition to value; the
first condition that holds is followed (conditions may nest). ``false``
stands for the empty module::

    "map": {
      "./lib/node.js": {"browser": "./lib/browser.js"},
      "fs": {"node": "fs", "default": false}
    }
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from importmapper.config.schema import Environment
from importmapper.errors import ConfigError
from importmapper.packages.builtins import EMPTY_MODULE
from importmapper.packages.graph import PACKAGE_FILE, DependencyGraph
from importmapper.packages.package_id import PackageId

logger = logging.getLogger("importmapper.packages.config_reader")


def resolve_conditional(value: Any, env: Environment) -> Optional[str]:
    """Follow a conditional map value down to a target, or None if no branch applies."""
    while isinstance(value, Mapping):
        for condition, branch in value.items():
            if env.matches(condition):
                value = branch
                break
        else:
            return None
    if value is False:
        return EMPTY_MODULE
    if isinstance(value, str):
        return value
    return None


def _strip_dot(path: str) -> str:
    return path[2:] if path.startswith("./") else path


@dataclass
class PackageConfig:
    """Package configuration resolved for one environment.

    Attributes:
        name: Declared package name, if any.
        main: Entry subpath relative to the package root (or ``@empty``).
        paths: Package subpath to replacement file, from ``./`` map targets.
        map: Other map targets (bare specifiers) to their resolved value.
    """

    name: Optional[str] = None
    main: Optional[str] = None
    paths: Dict[str, str] = field(default_factory=dict)
    map: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_package_json(cls, pjson: Mapping[str, Any], env: Environment) -> "PackageConfig":
        name = pjson.get("name") if isinstance(pjson.get("name"), str) else None
        main = pjson.get("main") if isinstance(pjson.get("main"), str) else None
        raw_map = pjson.get("map") or {}
        if not isinstance(raw_map, Mapping):
            raw_map = {}

        if main:
            main = _strip_dot(main)
            main_target = "./" + main
            if main_target in raw_map:
                mapped = resolve_conditional(raw_map[main_target], env)
                if mapped:
                    main = _strip_dot(mapped)

        paths: Dict[str, str] = {}
        targets: Dict[str, str] = {}
        for target, value in raw_map.items():
            mapped = resolve_conditional(value, env)
            if not mapped:
                continue
            if target.startswith("./"):
                paths[target[2:]] = mapped
            else:
                targets[target] = mapped
        return cls(name=name, main=main, paths=paths, map=targets)


class PackageConfigReader:
    """Memoized async reader; each package config is read at most once.

    Configs come from the node's in-memory ``config`` when present, else from
    ``<project_dir>/<packages_dir>/<registry>/<name>@<version>/package.json``.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        project_dir: Union[str, Path],
        env: Environment,
        packages_dir: str = "jspm_packages",
    ) -> None:
        self.graph = graph
        self.project_dir = Path(project_dir)
        self.env = env
        self.packages_dir = packages_dir
        self.disk_reads = 0
        self._tasks: Dict[PackageId, "asyncio.Future[PackageConfig]"] = {}

    def package_dir(self, pkg_id: PackageId) -> Path:
        return self.project_dir / self.packages_dir / pkg_id.path

    async def get(self, pkg_id: PackageId) -> PackageConfig:
        task = self._tasks.get(pkg_id)
        if task is None:
            task = asyncio.ensure_future(self._load(pkg_id))
            self._tasks[pkg_id] = task
        return await task

    async def _load(self, pkg_id: PackageId) -> PackageConfig:
        node = self.graph.get(pkg_id)
        if node.config is not None:
            pjson = node.config
        else:
            pjson = await asyncio.to_thread(self._read_package_json, pkg_id)
        config = PackageConfig.from_package_json(pjson, self.env)
        logger.debug(
            "Loaded config for %s: main=%s, %d paths, %d map targets",
            pkg_id,
            config.main,
            len(config.paths),
            len(config.map),
        )
        return config

    def _read_package_json(self, pkg_id: PackageId) -> Dict[str, Any]:
        path = self.package_dir(pkg_id) / PACKAGE_FILE
        self.disk_reads += 1
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as exc:
            raise ConfigError(
                f"Package {pkg_id} is not installed correctly. Run jspm install.",
                package=str(pkg_id),
            ) from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(
                f"Package {pkg_id} has an invalid {PACKAGE_FILE}: {exc}",
                package=str(pkg_id),
            ) from exc
        if not isinstance(data, dict):
            raise ConfigError(
                f"Package {pkg_id} has an invalid {PACKAGE_FILE}",
                package=str(pkg_id),
            )
        return data


__all__ = ["PackageConfig", "PackageConfigReader", "resolve_conditional"]
