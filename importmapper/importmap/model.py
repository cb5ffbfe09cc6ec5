"""Import map data model.

An import map is serialized in the standard shape::

    {"imports": {specifier: target}, "scopes": {prefix: {specifier: target}}}

Targets and scope prefixes are relative to the directory (or URL) the map is
loaded from, so one map can be moved around with ``rebase``.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from importmapper.errors import ImportMapError

logger = logging.getLogger("importmapper.importmap.model")

Imports = Dict[str, str]
Scopes = Dict[str, Imports]

_VALID_KEYS = ("imports", "scopes")


@dataclass
class ImportMap:
    """Top-level imports plus scope-prefixed overrides."""

    imports: Imports = field(default_factory=dict)
    scopes: Scopes = field(default_factory=dict)

    def scope(self, prefix: str) -> Imports:
        """Return the mapping for ``prefix``, creating it when missing."""
        return self.scopes.setdefault(prefix, {})

    def copy(self) -> "ImportMap":
        return ImportMap(imports=dict(self.imports), scopes=copy.deepcopy(self.scopes))

    def is_empty(self) -> bool:
        return not self.imports and not any(self.scopes.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "imports": dict(self.imports),
            "scopes": {prefix: dict(imports) for prefix, imports in self.scopes.items()},
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False) + "\n"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], source: str = "import map") -> "ImportMap":
        """Build and validate an ImportMap from parsed JSON.

        Args:
            data: Parsed import map object.
            source: Name used in error messages (usually the file name).

        Raises:
            ImportMapError: If the structure is not a valid import map.
        """
        if not isinstance(data, Mapping):
            raise ImportMapError(f"{source} is not a valid import map: expected an object")
        for key in data:
            if key not in _VALID_KEYS:
                raise ImportMapError(
                    f'{source} is not a valid import map as it contains the invalid key "{key}".'
                )

        imports = _validate_imports(data.get("imports") or {}, source, "imports")
        scopes: Scopes = {}
        raw_scopes = data.get("scopes") or {}
        if not isinstance(raw_scopes, Mapping):
            raise ImportMapError(f"{source}: scopes must be an object")
        for prefix, scope_imports in raw_scopes.items():
            if not prefix.endswith("/"):
                raise ImportMapError(f'{source}: scope "{prefix}" must end in "/"')
            scopes[prefix] = _validate_imports(scope_imports or {}, source, f"scopes[{prefix}]")

        return cls(imports=imports, scopes=scopes)

    @classmethod
    def from_json(cls, text: str, source: str = "import map") -> "ImportMap":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ImportMapError(f"{source} is not valid JSON: {exc}") from exc
        return cls.from_dict(data, source)


def _validate_imports(value: Any, source: str, where: str) -> Imports:
    if not isinstance(value, Mapping):
        raise ImportMapError(f"{source}: {where} must be an object")
    imports: Imports = {}
    for specifier, target in value.items():
        if not isinstance(target, str):
            raise ImportMapError(
                f"{source}: {where} target for {specifier!r} must be a string"
            )
        imports[str(specifier)] = target
    return imports


def read_import_map(path: Union[str, Path]) -> ImportMap:
    """Load an import map JSON file."""
    path = Path(path)
    logger.debug("Reading import map from %s", path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ImportMapError(f"Unable to read import map {path}: {exc}") from exc
    return ImportMap.from_json(text, source=str(path))


__all__ = ["ImportMap", "Imports", "Scopes", "read_import_map"]
