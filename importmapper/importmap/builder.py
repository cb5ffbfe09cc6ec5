"""Package map builder.

Turns an installed dependency graph into a full import map:

* every root alias maps to its package main, its package folder
  (``alias/``), and any remapped subpaths;
* every package visited gets a scope keyed by its folder holding the
  entries whose resolution differs from the root's view: its own name,
  its dependency aliases, and its resolved ``map`` targets;
* platform builtins not taken by a root alias map to the builtins shim.

Population runs concurrently with ``asyncio``. Each package coroutine only
writes the scope keyed by its own folder, and root coroutines only write
their own alias keys, so writers never collide.
"""

from __future__ import annotations

import asyncio
import logging
import os
import posixpath
from pathlib import Path
from typing import Mapping, Optional, Set, Tuple, Union

from importmapper.config.schema import Environment, MapperConfig
from importmapper.errors import ConfigError
from importmapper.importmap.model import ImportMap, Imports
from importmapper.importmap.utils import clean, is_url
from importmapper.packages.builtins import EMPTY_MODULE, NODE_BUILTINS, is_builtin, shim_file
from importmapper.packages.config_reader import PackageConfig, PackageConfigReader
from importmapper.packages.graph import DependencyGraph, PackageNode
from importmapper.packages.package_id import PackageId

logger = logging.getLogger("importmapper.importmap.builder")

DEFAULT_MAIN = "index.js"


def _join(*parts: str) -> str:
    """Join path segments into a map value relative to the map base."""
    joined = posixpath.normpath(posixpath.join(*parts))
    if joined == ".":
        return "./"
    if joined == ".." or joined.startswith("../"):
        return joined
    return "./" + joined


class PackageMapBuilder:
    """Builds the import map for one installed project.

    Args:
        graph: Installed dependency graph.
        project_dir: Project root holding the packages directory.
        config: Mapper configuration; defaults are used when omitted.
        env: Target environment; overrides ``config.env``.
        map_base: Directory the map values are relative to. Defaults to
            ``project_dir``.
        root_dependencies: Root aliases to map. Defaults to the graph's root
            aliases, without development-only ones when ``env`` excludes dev.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        project_dir: Union[str, Path],
        config: Optional[MapperConfig] = None,
        env: Optional[Environment] = None,
        map_base: Optional[Union[str, Path]] = None,
        root_dependencies: Optional[Mapping[str, PackageId]] = None,
    ) -> None:
        self.graph = graph
        self.config = config or MapperConfig.default()
        self.env = env or self.config.env
        self.project_dir = Path(project_dir)
        self.map_base = Path(map_base) if map_base is not None else self.project_dir
        self.reader = PackageConfigReader(
            graph, self.project_dir, self.env, self.config.packages_dir
        )

        try:
            self.builtins_id = PackageId.parse(self.config.builtins_package)
        except ValueError as exc:
            raise ConfigError(str(exc), package=self.config.builtins_package) from exc

        if root_dependencies is None:
            root_dependencies = graph.root_dependencies(include_dev=self.env.include_dev)
        self.dependencies = dict(root_dependencies)

        rel_base = os.path.relpath(self.project_dir.resolve(), self.map_base.resolve())
        self.rel_base = rel_base.replace(os.sep, "/")

    def package_path(self, pkg_id: PackageId) -> str:
        """Package folder (without trailing '/') relative to the map base."""
        return _join(self.rel_base, self.config.packages_dir, pkg_id.path)

    def shim_path(self, name: str) -> str:
        return _join(self.package_path(self.builtins_id), shim_file(name, bool(self.env.browser)))

    async def build(self) -> ImportMap:
        """Populate and clean the full import map."""
        import_map = ImportMap()
        seen: Set[PackageId] = set()

        cycles = self.graph.find_cycles()
        if cycles:
            logger.debug("Dependency graph has %d cycle(s), e.g. %s", len(cycles), cycles[0])

        tasks = []
        for alias, pkg_id in self.dependencies.items():
            if alias == self.config.builtins_alias:
                continue
            tasks.append(self._populate_root(alias, pkg_id, import_map, seen))
        await asyncio.gather(*tasks)

        if self.config.include_builtins:
            self._add_builtins(import_map.imports)

        result = clean(import_map)
        logger.info(
            "Built import map: %d imports, %d scopes, %d packages visited",
            len(result.imports),
            len(result.scopes),
            len(seen),
        )
        return result

    async def _populate_root(
        self, alias: str, pkg_id: PackageId, import_map: ImportMap, seen: Set[PackageId]
    ) -> None:
        config = await self.reader.get(pkg_id)
        self._add_package_entries(import_map.imports, alias, pkg_id, config)
        await self._populate(pkg_id, import_map, seen)

    async def _populate(
        self, pkg_id: PackageId, import_map: ImportMap, seen: Set[PackageId]
    ) -> None:
        if pkg_id in seen:
            return
        seen.add(pkg_id)

        node = self.graph.get(pkg_id)
        deps = {
            alias: dep_id
            for alias, dep_id in node.resolve.items()
            if alias != self.config.builtins_alias
        }
        config = await self.reader.get(pkg_id)
        dep_configs = await asyncio.gather(*(self.reader.get(dep_id) for dep_id in deps.values()))

        scope: Imports = {}
        if config.name:
            self._add_package_entries(scope, config.name, pkg_id, config)
        for (alias, dep_id), dep_config in zip(deps.items(), dep_configs):
            if self.dependencies.get(alias) == dep_id:
                continue
            self._add_package_entries(scope, alias, dep_id, dep_config)

        pkg_path = self.package_path(pkg_id)
        for target, mapped in config.map.items():
            resolved = await self._map_target(mapped, node, pkg_path)
            if resolved is None:
                logger.warning(
                    "Package %s maps %s to %s, which is not a file, dependency or builtin; skipping",
                    pkg_id,
                    target,
                    mapped,
                )
                continue
            scope[target] = resolved

        if scope:
            import_map.scopes[pkg_path + "/"] = scope
        logger.debug("Populated %s with %d scoped entries", pkg_id, len(scope))

        await asyncio.gather(*(self._populate(dep_id, import_map, seen) for dep_id in deps.values()))

    def _add_package_entries(
        self, imports: Imports, alias: str, pkg_id: PackageId, config: PackageConfig
    ) -> None:
        pkg_path = self.package_path(pkg_id)
        imports[alias] = self._package_file(pkg_path, config.main or DEFAULT_MAIN)
        imports[alias + "/"] = pkg_path + "/"
        for subpath, file in config.paths.items():
            imports[f"{alias}/{subpath}"] = self._package_file(pkg_path, file)

    def _package_file(self, pkg_path: str, file: str) -> str:
        if file == EMPTY_MODULE:
            return self.shim_path(EMPTY_MODULE)
        if is_url(file):
            return file
        joined = _join(pkg_path, file)
        if file.endswith("/") and not joined.endswith("/"):
            joined += "/"
        return joined

    async def _map_target(self, mapped: str, node: PackageNode, pkg_path: str) -> Optional[str]:
        """Concrete map value for one resolved ``map`` target of a package."""
        if mapped == EMPTY_MODULE:
            return self.shim_path(EMPTY_MODULE)
        if mapped.startswith(("./", "../")):
            return self._package_file(pkg_path, mapped)
        if is_url(mapped, absolute=True):
            return mapped

        match = _match_alias(mapped, node.resolve) or _match_alias(mapped, self.dependencies)
        if match is not None:
            dep_id, subpath = match
            dep_path = self.package_path(dep_id)
            dep_config = await self.reader.get(dep_id)
            if subpath is None:
                return self._package_file(dep_path, dep_config.main or DEFAULT_MAIN)
            if subpath == "":
                return dep_path + "/"
            return self._package_file(dep_path, dep_config.paths.get(subpath, subpath))

        if is_builtin(mapped):
            return self.shim_path(mapped)
        return None

    def _add_builtins(self, imports: Imports) -> None:
        for name in sorted(NODE_BUILTINS):
            if name not in imports:
                imports[name] = self.shim_path(name)


def _match_alias(
    specifier: str, resolve: Mapping[str, PackageId]
) -> Optional[Tuple[PackageId, Optional[str]]]:
    """Match ``specifier`` against dependency aliases.

    Returns the package and the subpath after ``alias/`` (``None`` for the
    bare alias, ``""`` for ``alias/``), preferring the longest alias.
    """
    if specifier in resolve:
        return resolve[specifier], None
    best: Optional[str] = None
    for alias in resolve:
        if specifier.startswith(alias + "/") and (best is None or len(alias) > len(best)):
            best = alias
    if best is None:
        return None
    return resolve[best], specifier[len(best) + 1 :]


async def build_import_map(
    graph: DependencyGraph,
    project_dir: Union[str, Path],
    config: Optional[MapperConfig] = None,
    env: Optional[Environment] = None,
    map_base: Optional[Union[str, Path]] = None,
    root_dependencies: Optional[Mapping[str, PackageId]] = None,
) -> ImportMap:
    """Build the full import map for an installed project.

    Raises:
        ConfigError: If a package is missing from the graph or its
            ``package.json`` is missing or invalid.
    """
    builder = PackageMapBuilder(
        graph,
        project_dir,
        config=config,
        env=env,
        map_base=map_base,
        root_dependencies=root_dependencies,
    )
    return await builder.build()


__all__ = ["PackageMapBuilder", "build_import_map"]
