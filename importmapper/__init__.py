"""importmapper - import map generation and module tracing for installed packages."""

from importmapper.analysis import analyze_module_syntax
from importmapper.config import Environment, MapperConfig, load_mapper_config
from importmapper.errors import (
    AnalysisError,
    ConfigError,
    ImportMapError,
    ImportMapperError,
    ModuleLoadError,
    ResolutionError,
)
from importmapper.importmap import (
    ImportMap,
    MapResolver,
    PackageMapBuilder,
    build_import_map,
    clean,
    extend,
    filter_map,
    flatten_scopes,
    rebase,
    trace_modules,
)
from importmapper.packages import DependencyGraph, PackageId, load_dependency_graph

__version__ = "0.1.0"

__all__ = [
    "AnalysisError",
    "ConfigError",
    "DependencyGraph",
    "Environment",
    "ImportMap",
    "ImportMapError",
    "ImportMapperError",
    "MapResolver",
    "MapperConfig",
    "ModuleLoadError",
    "PackageId",
    "PackageMapBuilder",
    "ResolutionError",
    "analyze_module_syntax",
    "build_import_map",
    "clean",
    "extend",
    "filter_map",
    "flatten_scopes",
    "load_dependency_graph",
    "load_mapper_config",
    "rebase",
    "trace_modules",
]
