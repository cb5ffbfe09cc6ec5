"""DOT export for traces."""

import logging
from pathlib import Path

import networkx as nx

from importmapper.export.graph import trace_to_graph
from importmapper.importmap.resolver import Trace

logger = logging.getLogger("importmapper.export.dot")


def _quote(value: object) -> str:
    text = str(value)
    return f'"{text}"' if ":" in text else text


def _pydot_safe(graph: nx.DiGraph) -> nx.DiGraph:
    """Copy of ``graph`` with URL node names and specifiers quoted for pydot."""
    safe = nx.relabel_nodes(graph, {node: _quote(node) for node in graph})
    for _, _, data in safe.edges(data=True):
        data["specifier"] = _quote(data["specifier"])
    return safe


def export_trace_dot(trace: Trace, output_path: Path) -> bool:
    """Export the module graph of a trace to DOT format.

    Args:
        trace: Trace to export.
        output_path: Output file path.

    Returns:
        bool: False when no DOT writer (pydot or pygraphviz) is installed.
    """
    logger.info("Exporting trace graph to DOT: %s", output_path)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    graph = trace_to_graph(trace)

    # Use pydot if available, otherwise pygraphviz
    try:
        import pydot  # noqa: F401
        from networkx.drawing.nx_pydot import write_dot

        graph = _pydot_safe(graph)
    except ImportError:
        try:
            import pygraphviz  # noqa: F401
            from networkx.drawing.nx_agraph import write_dot
        except ImportError:
            logger.warning("Neither pydot nor pygraphviz available, DOT export skipped")
            return False

    write_dot(graph, str(output_path))
    logger.info(
        "DOT export completed: %d nodes, %d edges",
        graph.number_of_nodes(),
        graph.number_of_edges(),
    )
    return True
