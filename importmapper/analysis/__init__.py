"""Module source analysis."""

from importmapper.analysis.esm_lexer import (
    IMPORT_META,
    STATIC_IMPORT,
    ImportRecord,
    ModuleSyntax,
    ModuleSyntaxError,
    analyze_module_syntax,
)

__all__ = [
    "IMPORT_META",
    "STATIC_IMPORT",
    "ImportRecord",
    "ModuleSyntax",
    "ModuleSyntaxError",
    "analyze_module_syntax",
]
