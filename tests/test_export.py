"""Tests for trace graph views and exporters."""

import json
import sys
from pathlib import Path

import pytest

from importmapper.export.dot import export_trace_dot
from importmapper.export.graph import trace_to_graph
from importmapper.export.json import export_import_map, export_trace_graph_json, export_trace_json
from importmapper.importmap.model import ImportMap

A = "file:///app/a.js"
B = "file:///app/b.js"
CDN = "https://cdn.example.com/x.js"
TRACE = {A: {"./b.js": B, "cdn": CDN}, B: {}}


def test_trace_to_graph_marks_untraced_leaves() -> None:
    """Traced modules and remote leaves become nodes; imports become edges."""
    graph = trace_to_graph(TRACE)

    assert set(graph.nodes) == {A, B, CDN}
    assert graph.nodes[A]["traced"] is True
    assert graph.nodes[B]["traced"] is True
    assert graph.nodes[CDN]["traced"] is False
    assert graph.edges[A, B]["specifier"] == "./b.js"
    assert graph.edges[A, CDN]["specifier"] == "cdn"


def test_export_trace_json_and_import_map(tmp_path: Path) -> None:
    """Traces and maps are written as JSON, creating parent folders."""
    trace_path = tmp_path / "out" / "trace.json"
    map_path = tmp_path / "out" / "importmap.json"

    export_trace_json(TRACE, trace_path)
    export_import_map(ImportMap(imports={"a": "./a.js"}), map_path)

    assert json.loads(trace_path.read_text(encoding="utf-8")) == TRACE
    assert json.loads(map_path.read_text(encoding="utf-8")) == {
        "imports": {"a": "./a.js"},
        "scopes": {},
    }


def test_export_trace_graph_json(tmp_path: Path) -> None:
    """Node-link JSON carries node flags and edge specifiers."""
    output = tmp_path / "graph.json"

    export_trace_graph_json(TRACE, output)

    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["directed"] is True
    assert {node["id"] for node in data["nodes"]} == {A, B, CDN}
    edges = {(edge["source"], edge["target"]): edge["specifier"] for edge in data["edges"]}
    assert edges == {(A, B): "./b.js", (A, CDN): "cdn"}


def test_export_trace_dot(tmp_path: Path) -> None:
    """DOT output names every module."""
    pytest.importorskip("pydot")
    output = tmp_path / "trace.dot"

    assert export_trace_dot(TRACE, output) is True

    content = output.read_text(encoding="utf-8")
    assert "digraph" in content
    assert A in content
    assert CDN in content


def test_export_trace_dot_without_writer(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Without pydot or pygraphviz the export is skipped."""
    monkeypatch.setitem(sys.modules, "pydot", None)
    monkeypatch.setitem(sys.modules, "pygraphviz", None)

    assert export_trace_dot(TRACE, tmp_path / "trace.dot") is False
