"""Import map resolution and module tracing.

``MapResolver`` is one resolution session over an import map. It resolves
specifiers with scope-aware import map semantics and, when tracing, reads
and analyzes every reachable ``file:`` module to record its dependencies.
It accumulates two results:

- ``trace``: resolved module URL -> {raw specifier: resolved URL}
- ``used_map``: the subset of the import map that tracing actually used
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union
from urllib.parse import urljoin, urlparse
from urllib.request import url2pathname

from importmapper.analysis import analyze_module_syntax
from importmapper.errors import AnalysisError, ModuleLoadError, ResolutionError
from importmapper.importmap.model import ImportMap, Imports
from importmapper.importmap.utils import clean, get_import_match, iter_scope_matches

logger = logging.getLogger("importmapper.importmap.resolver")

Trace = Dict[str, Dict[str, str]]

# Two or more letters so Windows drive paths are not taken for URLs.
_URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z\d+\-.]+:")


def resolve_if_not_plain_or_url(specifier: str, parent_url: str) -> Optional[str]:
    """Resolve URLs and relative specifiers; None for bare specifiers."""
    if specifier.startswith(("./", "../", "/")) or specifier in (".", ".."):
        return urljoin(parent_url, specifier)
    if _URL_SCHEME.match(specifier):
        return specifier
    return None


def to_base_url(base: Union[str, Path]) -> str:
    """Directory URL (ending in '/') for a filesystem path or URL."""
    if isinstance(base, str) and _URL_SCHEME.match(base):
        url = base
    else:
        url = Path(base).resolve().as_uri()
    return url if url.endswith("/") else url + "/"


def url_to_path(url: str) -> Path:
    return Path(url2pathname(urlparse(url).path))


def _display(url: str) -> str:
    return str(url_to_path(url)) if url.startswith("file:") else url


class MapResolver:
    """Resolution session over one import map.

    Args:
        import_map: Map whose relative keys and values are relative to
            ``base_url``.
        base_url: URL or directory the map is relative to.
        relative_fallback: Resolve unmapped top-level bare specifiers as
            same-directory relative files instead of failing.
    """

    def __init__(
        self,
        import_map: ImportMap,
        base_url: Union[str, Path],
        relative_fallback: bool = False,
    ) -> None:
        self.import_map = import_map
        self.base_url = to_base_url(base_url)
        self.relative_fallback = relative_fallback
        self.trace: Trace = {}
        self.used_map = ImportMap()

        # resolved scope URL -> (scope key as written, scope imports)
        self._scopes: Dict[str, Tuple[str, Imports]] = {}
        for name, imports in import_map.scopes.items():
            self._scopes[self._resolve_map_url(name)] = (name, imports)

    def _resolve_map_url(self, value: str) -> str:
        resolved = resolve_if_not_plain_or_url(value, self.base_url)
        if resolved is None:
            resolved = urljoin(self.base_url, "./" + value)
        return resolved

    def _apply(self, specifier: str, imports: Imports, parent_url: str) -> Optional[Tuple[str, str]]:
        match = get_import_match(specifier, imports)
        if match is None:
            return None
        target = imports[match]
        rest = specifier[len(match) :]
        if rest and not target.endswith("/"):
            raise ResolutionError(
                specifier, parent_url, reason=f'target of "{match}" must end in "/"'
            )
        return match, self._resolve_map_url(target) + rest

    def resolve(self, specifier: str, parent_url: str, top_level: bool = False) -> str:
        """Resolve ``specifier`` imported from ``parent_url``.

        Relative specifiers and URLs resolve against the parent. Bare
        specifiers go through the enclosing scopes, most specific first, and
        then the top-level imports. Each matched entry is recorded in
        ``used_map``.

        Raises:
            ResolutionError: If no mapping applies.
        """
        resolved = resolve_if_not_plain_or_url(specifier, parent_url)
        if resolved is not None:
            return resolved

        for scope_url in iter_scope_matches(parent_url, self._scopes):
            name, imports = self._scopes[scope_url]
            applied = self._apply(specifier, imports, parent_url)
            if applied is not None:
                match, resolved = applied
                self.used_map.scope(name)[match] = imports[match]
                return resolved

        applied = self._apply(specifier, self.import_map.imports, parent_url)
        if applied is not None:
            match, resolved = applied
            self.used_map.imports[match] = self.import_map.imports[match]
            return resolved

        if top_level and self.relative_fallback:
            logger.debug("No mapping for %s, resolving it relative to %s", specifier, parent_url)
            return urljoin(parent_url, "./" + specifier)

        raise ResolutionError(specifier, parent_url)

    async def resolve_all(
        self,
        specifier: str,
        parent_url: str,
        seen: Optional[Set[str]] = None,
    ) -> str:
        """Resolve ``specifier`` and trace everything it imports.

        Args:
            specifier: Specifier to resolve.
            parent_url: URL of the importing module (or the base URL).
            seen: Module URLs already visited in this tracing run. Omit for a
                top-level call.

        Returns:
            The resolved URL of ``specifier``.

        Raises:
            ResolutionError: If a specifier in the graph has no resolution.
            ModuleLoadError: If a module cannot be read.
            AnalysisError: If a module cannot be lexed.
        """
        top_level = seen is None
        if seen is None:
            seen = set()

        resolved = self.resolve(specifier, parent_url, top_level)
        if resolved in seen:
            return resolved
        seen.add(resolved)

        if not resolved.startswith("file:"):
            return resolved

        try:
            deps = await self._read_dependencies(resolved)
        except (OSError, UnicodeDecodeError) as exc:
            raise ModuleLoadError(specifier, _display(parent_url), exc) from exc

        resolved_deps = await asyncio.gather(
            *(self.resolve_all(dep, resolved, seen) for dep in deps)
        )
        self.trace[resolved] = dict(zip(deps, resolved_deps))
        logger.debug("Traced %s: %d dependencies", resolved, len(deps))
        return resolved

    async def _read_dependencies(self, url: str) -> List[str]:
        path = url_to_path(url)
        source = await asyncio.to_thread(path.read_text, encoding="utf-8")
        syntax = analyze_module_syntax(source)
        if syntax.error is not None:
            raise AnalysisError(str(path), syntax.error.position)
        return list(dict.fromkeys(syntax.specifiers(source)))

    async def trace_all(self, modules: Iterable[str]) -> Trace:
        """Trace each entry module from the base URL, one run per module."""
        for module in modules:
            await self.resolve_all(module, self.base_url)
        return self.trace


async def trace_modules(
    import_map: ImportMap,
    base_dir: Union[str, Path],
    modules: Iterable[str],
    relative_fallback: bool = False,
) -> Trace:
    """Trace entry modules through ``import_map``.

    Returns:
        Mapping of every visited module URL to its resolved dependencies.
    """
    resolver = MapResolver(import_map, base_dir, relative_fallback=relative_fallback)
    trace = await resolver.trace_all(modules)
    logger.info("Traced %d modules", len(trace))
    return trace


async def filter_map(
    import_map: ImportMap,
    base_dir: Union[str, Path],
    modules: Iterable[str],
    relative_fallback: bool = False,
) -> ImportMap:
    """Reduce ``import_map`` to the entries reachable from ``modules``."""
    resolver = MapResolver(import_map, base_dir, relative_fallback=relative_fallback)
    await resolver.trace_all(modules)
    filtered = clean(resolver.used_map)
    logger.info(
        "Filtered import map: %d of %d imports, %d of %d scopes kept",
        len(filtered.imports),
        len(import_map.imports),
        len(filtered.scopes),
        len(import_map.scopes),
    )
    return filtered


__all__ = [
    "MapResolver",
    "Trace",
    "filter_map",
    "resolve_if_not_plain_or_url",
    "to_base_url",
    "trace_modules",
    "url_to_path",
]
