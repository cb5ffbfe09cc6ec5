"""Package identifiers.

A package is identified by ``registry:name@version``, e.g.
``npm:left-pad@1.0.0`` or ``npm:@jspm/node-builtins@0.1.2``. Its installed
files live at ``<packages_dir>/<registry>/<name>@<version>``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_PACKAGE_PATTERN = re.compile(
    r"^([a-z]+):([@\-_.a-zA-Z\d][-_.a-zA-Z\d]*(?:/[-_.a-zA-Z\d]+)*)(?:@([^@]+))?$"
)


@dataclass(frozen=True, order=True)
class PackageId:
    """Canonical (registry, name, version) triple."""

    registry: str
    name: str
    version: str = ""

    @classmethod
    def parse(cls, value: str) -> "PackageId":
        """Parse ``registry:name@version``.

        Raises:
            ValueError: If ``value`` is not a package name.
        """
        match = _PACKAGE_PATTERN.match(value)
        if not match:
            raise ValueError(f"{value!r} is not a valid package name")
        registry, name, version = match.groups()
        return cls(registry=registry, name=name, version=version or "")

    @classmethod
    def try_parse(cls, value: str) -> Optional["PackageId"]:
        try:
            return cls.parse(value)
        except ValueError:
            return None

    @property
    def path(self) -> str:
        """Location relative to the packages directory."""
        return f"{self.registry}/{self.name}{self._version_suffix}"

    @property
    def _version_suffix(self) -> str:
        return f"@{self.version}" if self.version else ""

    def __str__(self) -> str:
        return f"{self.registry}:{self.name}{self._version_suffix}"


__all__ = ["PackageId"]
