"""JSON export for import maps and traces."""

import json
import logging
from pathlib import Path

import networkx as nx

from importmapper.export.graph import trace_to_graph
from importmapper.importmap.model import ImportMap
from importmapper.importmap.resolver import Trace

logger = logging.getLogger("importmapper.export.json")


def export_import_map(import_map: ImportMap, output_path: Path) -> None:
    """Write an import map as JSON.

    Args:
        import_map: Map to write.
        output_path: Output file path.
    """
    logger.info("Writing import map to %s", output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(import_map.to_json(), encoding="utf-8")


def export_trace_json(trace: Trace, output_path: Path) -> None:
    """Write a trace as ``{url: {specifier: url}}`` JSON."""
    logger.info("Writing trace to %s", output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(trace, f, indent=2, ensure_ascii=False, sort_keys=True)


def export_trace_graph_json(trace: Trace, output_path: Path) -> None:
    """Write the module graph of a trace in networkx node-link JSON.

    Args:
        trace: Trace to export.
        output_path: Output file path.
    """
    logger.info("Exporting trace graph to JSON: %s", output_path)

    output_path.parent.mkdir(parents=True, exist_ok=True)

    graph = trace_to_graph(trace)
    data = nx.readwrite.json_graph.node_link_data(graph, edges="edges")

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.info(
        "JSON export completed: %d nodes, %d edges",
        graph.number_of_nodes(),
        graph.number_of_edges(),
    )
