"""Import map model, hygiene utilities, builder, and resolver."""

from importmapper.importmap.builder import PackageMapBuilder, build_import_map
from importmapper.importmap.model import ImportMap, read_import_map
from importmapper.importmap.resolver import MapResolver, Trace, filter_map, trace_modules
from importmapper.importmap.utils import clean, extend, flatten_scopes, rebase

__all__ = [
    "ImportMap",
    "MapResolver",
    "PackageMapBuilder",
    "Trace",
    "build_import_map",
    "clean",
    "extend",
    "filter_map",
    "flatten_scopes",
    "read_import_map",
    "rebase",
    "trace_modules",
]
