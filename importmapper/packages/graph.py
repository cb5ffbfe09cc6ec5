"""Installed dependency graph.

The graph is produced by the package installer and recorded in the project
lock file ``jspm.json``::

    {
      "resolve": {"left-pad": "npm:left-pad@1.0.0"},
      "dependencies": {
        "npm:left-pad@1.0.0": {"resolve": {}}
      }
    }

``resolve`` holds the root project's aliases; ``dependencies`` holds one
entry per installed package with that package's own alias resolutions.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Union

import networkx as nx

from importmapper.errors import ConfigError
from importmapper.packages.package_id import PackageId

logger = logging.getLogger("importmapper.packages.graph")

LOCK_FILE = "jspm.json"
PACKAGE_FILE = "package.json"


@dataclass
class PackageNode:
    """One installed package.

    Attributes:
        resolve: The package's dependency aliases mapped to installed packages.
        config: In-memory ``package.json`` contents. When set, the config
            reader uses it instead of reading the installed file.
    """

    resolve: Dict[str, PackageId] = field(default_factory=dict)
    config: Optional[Dict[str, Any]] = None


@dataclass
class DependencyGraph:
    """Root aliases plus every installed package node."""

    resolve: Dict[str, PackageId] = field(default_factory=dict)
    packages: Dict[PackageId, PackageNode] = field(default_factory=dict)
    dev_dependencies: Set[str] = field(default_factory=set)

    def get(self, pkg_id: PackageId) -> PackageNode:
        """Return the node for ``pkg_id``.

        Raises:
            ConfigError: If the package is not part of the installed graph.
        """
        node = self.packages.get(pkg_id)
        if node is None:
            raise ConfigError(
                f"Package {pkg_id} is not installed correctly. Run jspm install.",
                package=str(pkg_id),
            )
        return node

    def root_dependencies(self, include_dev: bool = True) -> Dict[str, PackageId]:
        """Root aliases, optionally without development-only ones."""
        return {
            alias: pkg_id
            for alias, pkg_id in self.resolve.items()
            if include_dev or alias not in self.dev_dependencies
        }

    def to_networkx(self) -> nx.DiGraph:
        """Package-level view: one node per package, one edge per alias."""
        graph = nx.DiGraph()
        graph.add_node("@root", type="root")
        for pkg_id in self.packages:
            graph.add_node(str(pkg_id), type="package", registry=pkg_id.registry)
        for alias, pkg_id in self.resolve.items():
            graph.add_edge("@root", str(pkg_id), alias=alias)
        for pkg_id, node in self.packages.items():
            for alias, dep_id in node.resolve.items():
                graph.add_edge(str(pkg_id), str(dep_id), alias=alias)
        return graph

    def find_cycles(self, limit: int = 20) -> List[List[str]]:
        """Return up to ``limit`` dependency cycles as lists of package names."""
        cycles: List[List[str]] = []
        for cycle in nx.simple_cycles(self.to_networkx()):
            cycles.append(cycle)
            if 0 < limit <= len(cycles):
                break
        return cycles

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        dev_dependencies: Optional[Set[str]] = None,
    ) -> "DependencyGraph":
        """Build a graph from parsed lock file contents.

        Raises:
            ConfigError: If a package name in the lock file is malformed.
        """
        graph = cls(dev_dependencies=set(dev_dependencies or ()))
        graph.resolve = _parse_resolve(data.get("resolve") or {}, "resolve")

        dependencies = data.get("dependencies") or {}
        if not isinstance(dependencies, Mapping):
            raise ConfigError("Lock file dependencies must be an object")
        for name, entry in dependencies.items():
            pkg_id = _parse_package(name, name)
            entry = entry or {}
            if not isinstance(entry, Mapping):
                raise ConfigError(f"Invalid lock file entry for {name}", package=name)
            graph.packages[pkg_id] = PackageNode(
                resolve=_parse_resolve(entry.get("resolve") or {}, name),
                config=entry.get("config"),
            )
        return graph

    def __iter__(self) -> Iterator[PackageId]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)


def _parse_package(value: Any, context: str) -> PackageId:
    if isinstance(value, str):
        pkg_id = PackageId.try_parse(value)
        if pkg_id is not None:
            return pkg_id
    raise ConfigError(f"Invalid package name {value!r} in {context}", package=context)


def _parse_resolve(value: Any, context: str) -> Dict[str, PackageId]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"Resolution map for {context} must be an object", package=context)
    return {alias: _parse_package(target, context) for alias, target in value.items()}


def _read_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path} is not valid JSON: {exc}") from exc


def load_dependency_graph(project_dir: Union[str, Path]) -> DependencyGraph:
    """Load the installed graph of a project.

    Reads ``jspm.json`` for the resolutions and ``package.json`` (when present)
    for the development-only root aliases listed under ``devDependencies``.

    Args:
        project_dir: Project root directory.

    Returns:
        DependencyGraph for the project.

    Raises:
        ConfigError: If the lock file is missing or invalid.
    """
    project_dir = Path(project_dir)
    lock_path = project_dir / LOCK_FILE
    if not lock_path.is_file():
        raise ConfigError(f"No {LOCK_FILE} found in {project_dir}. Run jspm install.")
    lock = _read_json(lock_path)
    if not isinstance(lock, Mapping):
        raise ConfigError(f"{lock_path} must contain an object")

    dev_dependencies: Set[str] = set()
    pjson_path = project_dir / PACKAGE_FILE
    if pjson_path.is_file():
        pjson = _read_json(pjson_path)
        if isinstance(pjson, Mapping):
            for section in (pjson, pjson.get("jspm") or {}):
                if isinstance(section, Mapping):
                    dev_dependencies.update(section.get("devDependencies") or {})

    graph = DependencyGraph.from_dict(lock, dev_dependencies)
    logger.info(
        "Loaded dependency graph from %s: %d root aliases, %d packages",
        lock_path,
        len(graph.resolve),
        len(graph.packages),
    )
    return graph


__all__ = ["DependencyGraph", "PackageNode", "load_dependency_graph", "LOCK_FILE"]
