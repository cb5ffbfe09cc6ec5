"""Installed package model: identifiers, dependency graph, package configs."""

from importmapper.packages.config_reader import (
    PackageConfig,
    PackageConfigReader,
    resolve_conditional,
)
from importmapper.packages.graph import DependencyGraph, PackageNode, load_dependency_graph
from importmapper.packages.package_id import PackageId

__all__ = [
    "DependencyGraph",
    "PackageConfig",
    "PackageConfigReader",
    "PackageId",
    "PackageNode",
    "load_dependency_graph",
    "resolve_conditional",
]
