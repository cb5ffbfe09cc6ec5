"""Graph views of traces."""

from __future__ import annotations

import networkx as nx

from importmapper.importmap.resolver import Trace


def trace_to_graph(trace: Trace) -> nx.DiGraph:
    """Module graph of a trace: one node per module URL, one edge per import.

    Edges carry the raw ``specifier`` the importer used.
    """
    graph = nx.DiGraph()
    for url, deps in trace.items():
        graph.add_node(url, traced=True)
        for specifier, resolved in deps.items():
            if resolved not in graph:
                graph.add_node(resolved, traced=False)
            graph.add_edge(url, resolved, specifier=specifier)
    return graph


__all__ = ["trace_to_graph"]
