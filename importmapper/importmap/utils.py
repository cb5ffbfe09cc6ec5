"""Import map hygiene helpers.

All functions here take an ``ImportMap`` and return a new one; inputs are
never mutated.

- clean: drop redundant scope entries and empty scopes, sort keys
- extend: merge a patch map into a base map
- rebase: re-relativize targets from one base directory to another
- flatten_scopes: fold scopes into top-level imports
"""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, TypeVar

from importmapper.errors import ImportMapError
from importmapper.importmap.model import ImportMap, Imports

logger = logging.getLogger("importmapper.importmap.utils")

_URL_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z\d+\-.]*:")

T = TypeVar("T")


def alphabetize(mapping: Mapping[str, T]) -> Dict[str, T]:
    return {key: mapping[key] for key in sorted(mapping)}


def is_url(value: str, absolute: bool = False) -> bool:
    """True for values with a URL scheme (or a leading '/' when ``absolute``)."""
    if absolute and value.startswith("/"):
        return True
    return bool(_URL_SCHEME.match(value))


def is_relative(specifier: str) -> bool:
    return (
        specifier.startswith("./")
        or specifier.startswith("../")
        or specifier in (".", "..")
    )


def normalize_target(value: str) -> str:
    """Canonical form of a map target, used to compare targets for equality."""
    if is_url(value):
        return value
    normalized = posixpath.normpath(value)
    if value.endswith("/") and not normalized.endswith("/"):
        normalized += "/"
    return normalized


def get_scope_match(path: str, scopes: Iterable[str]) -> Optional[str]:
    """Longest key of ``scopes`` that is a '/'-terminated prefix of ``path``."""
    candidates = scopes if isinstance(scopes, (set, frozenset, dict)) else set(scopes)
    sep_index = len(path)
    while True:
        segment = path[: sep_index + 1]
        if segment.endswith("/") and segment in candidates:
            return segment
        sep_index = path.rfind("/", 0, sep_index)
        if sep_index == -1:
            return None


def iter_scope_matches(path: str, scopes: Iterable[str]) -> Iterator[str]:
    """Keys of ``scopes`` that are '/'-terminated prefixes of ``path``, longest first."""
    candidates = set(scopes)
    match = get_scope_match(path, candidates)
    while match is not None:
        yield match
        match = get_scope_match(match[:-1], candidates)


def get_import_match(specifier: str, imports: Mapping[str, str]) -> Optional[str]:
    """Exact key for ``specifier``, else the longest matching key ending in '/'."""
    if specifier in imports:
        return specifier
    sep_index = len(specifier)
    while True:
        sep_index = specifier.rfind("/", 0, sep_index)
        if sep_index == -1:
            return None
        segment = specifier[: sep_index + 1]
        if segment in imports:
            return segment


def match_target(specifier: str, imports: Mapping[str, str]) -> Optional[str]:
    """Target ``imports`` gives ``specifier``, or None if nothing applies."""
    match = get_import_match(specifier, imports)
    if match is None:
        return None
    target = imports[match]
    rest = specifier[len(match) :]
    if rest and not target.endswith("/"):
        return None
    return target + rest


def clean(import_map: ImportMap) -> ImportMap:
    """Remove redundant scope entries, drop empty scopes, and sort all keys.

    A scope entry is redundant when, without it, the specifier still resolves
    to the same target at that scope through the rest of the scope, the
    enclosing scopes and the top-level imports.
    Idempotent: ``clean(clean(m)) == clean(m)``.
    """
    removed = 0
    scopes: Dict[str, Imports] = {}
    scope_keys = {normalize_target(prefix): prefix for prefix in import_map.scopes}
    for prefix, imports in import_map.scopes.items():
        # shorter keys first: a removal only changes how longer keys resolve
        kept: Imports = dict(imports)
        for specifier in sorted(imports, key=len):
            if is_relative(specifier):
                continue
            fallback = _fallback_target(specifier, prefix, kept, import_map, scope_keys)
            if fallback is not None and normalize_target(fallback) == normalize_target(imports[specifier]):
                del kept[specifier]
                removed += 1
        if kept:
            scopes[prefix] = alphabetize(kept)

    if removed:
        logger.debug("Removed %d redundant scope entries", removed)
    return ImportMap(imports=alphabetize(import_map.imports), scopes=alphabetize(scopes))


def _fallback_target(
    specifier: str,
    prefix: str,
    imports: Imports,
    import_map: ImportMap,
    scope_keys: Mapping[str, str],
) -> Optional[str]:
    """Target ``specifier`` resolves to at ``prefix`` once its own entry is gone.

    The rest of the scope is consulted first, then the enclosing scopes and
    the top-level imports. The first mapping with a matching key decides,
    even when its target cannot take the remainder.
    """
    rest = {key: value for key, value in imports.items() if key != specifier}
    mappings: List[Mapping[str, str]] = [rest]
    for enclosing in iter_scope_matches(normalize_target(prefix)[:-1], scope_keys):
        mappings.append(import_map.scopes[scope_keys[enclosing]])
    mappings.append(import_map.imports)
    for mapping in mappings:
        if get_import_match(specifier, mapping) is not None:
            return match_target(specifier, mapping)
    return None


def extend(base: ImportMap, patch: ImportMap) -> ImportMap:
    """Merge ``patch`` into ``base``; patch entries win, scopes merge per key."""
    merged = base.copy()
    merged.imports.update(patch.imports)
    for prefix, imports in patch.scopes.items():
        merged.scope(prefix).update(imports)
    return clean(merged)


def rebase(
    import_map: ImportMap,
    from_dir: str,
    to_dir: str,
    absolute: bool = False,
) -> ImportMap:
    """Re-express every relative key and target from ``from_dir`` to ``to_dir``.

    Args:
        import_map: Map whose relative entries are relative to ``from_dir``.
        from_dir: Directory the map is currently relative to.
        to_dir: Directory the result should be relative to.
        absolute: Emit '/'-rooted entries; every entry must then live under
            ``to_dir``.

    Raises:
        ImportMapError: In absolute mode, if an entry would climb above ``to_dir``.
    """
    from_dir = from_dir.replace("\\", "/")
    to_dir = to_dir.replace("\\", "/")
    prefix = "/" if absolute else "./"

    def rebase_path(value: str, name: str) -> str:
        if is_url(value, absolute=True):
            return value
        resolved = posixpath.normpath(posixpath.join(from_dir, value))
        rebased = posixpath.relpath(resolved, to_dir)
        if rebased == "..":
            rebased = "../"
        if rebased.startswith("../"):
            if absolute:
                raise ImportMapError(
                    f"Unable to reference mapping {name} at {rebased}. "
                    "The base for the import map must be a higher path than its mappings."
                )
        else:
            rebased = prefix + ("" if rebased == "." else rebased)
        if value.endswith("/") and not rebased.endswith("/"):
            rebased += "/"
        return rebased

    result = ImportMap()
    for specifier, target in import_map.imports.items():
        result.imports[specifier] = rebase_path(target, specifier)
    for scope_prefix, imports in import_map.scopes.items():
        new_prefix = rebase_path(scope_prefix, scope_prefix)
        new_scope = result.scope(new_prefix)
        for specifier, target in imports.items():
            new_scope[specifier] = rebase_path(target, specifier)
    return result


def flatten_scopes(import_map: ImportMap) -> ImportMap:
    """Fold every scope into the top-level imports.

    Raises:
        ImportMapError: If two scopes (or a scope and the imports) disagree on
            a specifier.
    """
    imports = dict(import_map.imports)
    for prefix, scope_imports in import_map.scopes.items():
        for specifier, target in scope_imports.items():
            existing = imports.get(specifier)
            if existing is not None and normalize_target(existing) != normalize_target(target):
                raise ImportMapError(
                    f"Cannot flatten scopes due to conflict for {specifier} "
                    f"between {existing} and {target} (scope {prefix})."
                )
            imports[specifier] = target
    return ImportMap(imports=alphabetize(imports), scopes={})


__all__ = [
    "alphabetize",
    "clean",
    "extend",
    "flatten_scopes",
    "get_import_match",
    "get_scope_match",
    "is_relative",
    "is_url",
    "match_target",
    "normalize_target",
    "rebase",
]
