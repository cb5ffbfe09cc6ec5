"""Exporters for import maps and traces."""

from importmapper.export.dot import export_trace_dot
from importmapper.export.graph import trace_to_graph
from importmapper.export.json import export_import_map, export_trace_graph_json, export_trace_json

__all__ = [
    "export_import_map",
    "export_trace_dot",
    "export_trace_graph_json",
    "export_trace_json",
    "trace_to_graph",
]
