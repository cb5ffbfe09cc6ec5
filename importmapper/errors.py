"""Exception hierarchy for importmapper.

Every error carries a short ``code`` so callers (and the CLI) can tell the
failure classes apart without matching on message text:

1. ConfigError - package or mapper configuration is missing or invalid
2. ResolutionError - a bare specifier is not covered by the import map
3. AnalysisError - a module source cannot be lexed
4. ModuleLoadError - a module source cannot be read
5. ImportMapError - an import map is malformed or cannot be transformed
"""

from __future__ import annotations

import errno
from typing import Optional


class ImportMapperError(Exception):
    """Base class for all user-facing importmapper errors."""

    code: str = "IMPORTMAPPER_ERROR"

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ConfigError(ImportMapperError):
    """Package configuration is missing, corrupt, or inconsistent.

    Raised with the offending package name. The graph is assumed to be
    installed consistently, so this is never retried or repaired.
    """

    code = "CONFIG_ERROR"

    def __init__(self, message: str, package: Optional[str] = None) -> None:
        super().__init__(message)
        self.package = package


class ResolutionError(ImportMapperError):
    """A specifier has no resolution in the applicable scopes or imports."""

    code = "RESOLUTION_ERROR"

    def __init__(self, specifier: str, parent_url: str, reason: Optional[str] = None) -> None:
        message = f"No resolution for {specifier} in {parent_url}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.specifier = specifier
        self.parent_url = parent_url


class AnalysisError(ImportMapperError):
    """Module source could not be lexed."""

    code = "ANALYSIS_ERROR"

    def __init__(self, path: str, position: Optional[int] = None) -> None:
        message = f"Syntax error analyzing {path}"
        if position is not None:
            message = f"{message} at offset {position}"
        super().__init__(message)
        self.path = path
        self.position = position


class ModuleLoadError(ImportMapperError):
    """Module source could not be read while tracing.

    ``code`` is the symbolic OS error name (``ENOENT`` for a missing file).
    """

    def __init__(
        self,
        specifier: str,
        parent: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(f"Loading {specifier} from {parent}", code=_error_code(cause))
        self.specifier = specifier
        self.parent = parent
        self.__cause__ = cause


class ImportMapError(ImportMapperError):
    """Import map is invalid or cannot be rebased/flattened."""

    code = "IMPORT_MAP_ERROR"


def _error_code(cause: Optional[BaseException]) -> str:
    """Normalize an underlying error into a symbolic code."""
    if isinstance(cause, ImportMapperError):
        return cause.code
    if isinstance(cause, FileNotFoundError):
        return "ENOENT"
    if isinstance(cause, OSError) and cause.errno is not None:
        return errno.errorcode.get(cause.errno, "EIO")
    return "EIO"


__all__ = [
    "AnalysisError",
    "ConfigError",
    "ImportMapError",
    "ImportMapperError",
    "ModuleLoadError",
    "ResolutionError",
]
