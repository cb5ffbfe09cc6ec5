"""Tests for importmapper CLI entrypoints."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import importmapper.main as main


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)


def _write_json(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def _project(root: Path) -> Path:
    """Installed project with one root dependency and one dev dependency."""
    _write_json(
        root / "jspm.json",
        {
            "resolve": {"a": "npm:a@1.0.0", "mocha": "npm:mocha@5.0.0"},
            "dependencies": {"npm:a@1.0.0": {}, "npm:mocha@5.0.0": {}},
        },
    )
    _write_json(root / "package.json", {"devDependencies": {"mocha": "^5.0.0"}})
    _write_json(root / "jspm_packages/npm/a@1.0.0/package.json", {"name": "a", "main": "lib.js"})
    _write_json(root / "jspm_packages/npm/mocha@5.0.0/package.json", {"name": "mocha"})
    return root


def test_main_requires_command(capsys: pytest.CaptureFixture[str]) -> None:
    """Ensure missing subcommands make the CLI print help and fail."""
    exit_code = main.main([])

    assert exit_code == 1
    assert "importmapper" in capsys.readouterr().out


def test_map_command_writes_import_map(tmp_path: Path) -> None:
    """`map` builds the project's import map into the output file."""
    project = _project(tmp_path / "project")
    output = tmp_path / "importmap.json"

    exit_code = main.main(
        ["map", str(project), "-o", str(output), "-c", '{"include_builtins": false}']
    )

    assert exit_code == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data == {
        "imports": {
            "a": "./jspm_packages/npm/a@1.0.0/lib.js",
            "a/": "./jspm_packages/npm/a@1.0.0/",
            "mocha": "./jspm_packages/npm/mocha@5.0.0/index.js",
            "mocha/": "./jspm_packages/npm/mocha@5.0.0/",
        },
        "scopes": {},
    }


def test_map_command_production_and_absolute(tmp_path: Path) -> None:
    """--production drops dev aliases and --absolute roots values at '/'."""
    project = _project(tmp_path / "project")
    output = tmp_path / "importmap.json"

    exit_code = main.main(
        [
            "map",
            str(project),
            "-o",
            str(output),
            "--production",
            "--absolute",
            "-c",
            "include_builtins = false",
        ]
    )

    assert exit_code == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["imports"] == {
        "a": "/jspm_packages/npm/a@1.0.0/lib.js",
        "a/": "/jspm_packages/npm/a@1.0.0/",
    }


def test_map_command_missing_lock_fails(tmp_path: Path) -> None:
    """A project without jspm.json exits non-zero."""
    assert main.main(["map", str(tmp_path)]) == 1


def _traced_app(root: Path) -> Path:
    (root / "lib").mkdir(parents=True)
    (root / "main.js").write_text("import 'dep';\n", encoding="utf-8")
    (root / "lib" / "dep.js").write_text("export default 1;\n", encoding="utf-8")
    map_path = root / "importmap.json"
    _write_json(map_path, {"imports": {"dep": "./lib/dep.js", "unused": "./lib/unused.js"}})
    return map_path


def test_trace_command_writes_trace(tmp_path: Path) -> None:
    """`trace` records each module's resolved dependencies."""
    map_path = _traced_app(tmp_path)
    output = tmp_path / "trace.json"

    exit_code = main.main(["trace", "./main.js", "-m", str(map_path), "-o", str(output)])

    assert exit_code == 0
    base = tmp_path.resolve().as_uri() + "/"
    assert json.loads(output.read_text(encoding="utf-8")) == {
        base + "lib/dep.js": {},
        base + "main.js": {"dep": base + "lib/dep.js"},
    }


def test_trace_command_graph_formats_need_output(tmp_path: Path) -> None:
    """Non-JSON formats fail without --output."""
    map_path = _traced_app(tmp_path)

    assert main.main(["trace", "./main.js", "-m", str(map_path), "-f", "dot"]) == 1


def test_trace_command_unresolved_specifier_fails(tmp_path: Path) -> None:
    """Resolution failures exit non-zero."""
    map_path = _traced_app(tmp_path)
    (tmp_path / "main.js").write_text("import 'missing';\n", encoding="utf-8")

    assert main.main(["trace", "./main.js", "-m", str(map_path)]) == 1


def test_filter_command_keeps_used_entries(tmp_path: Path) -> None:
    """`filter` drops map entries the entry modules never use."""
    map_path = _traced_app(tmp_path)
    output = tmp_path / "filtered.json"

    exit_code = main.main(["filter", "./main.js", "-m", str(map_path), "-o", str(output)])

    assert exit_code == 0
    assert json.loads(output.read_text(encoding="utf-8")) == {
        "imports": {"dep": "./lib/dep.js"},
        "scopes": {},
    }
