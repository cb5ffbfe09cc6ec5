"""Tests for building import maps from installed dependency graphs."""

import asyncio
import json
from pathlib import Path
from typing import Dict, Optional

import pytest

from importmapper.config.schema import Environment, MapperConfig
from importmapper.errors import ConfigError
from importmapper.importmap.builder import PackageMapBuilder, build_import_map
from importmapper.packages.graph import DependencyGraph, PackageNode
from importmapper.packages.package_id import PackageId

NO_BUILTINS = MapperConfig(include_builtins=False)
SHIM = "./jspm_packages/npm/@jspm/node-builtins@0.1.2"


def _pkg(name: str) -> str:
    return "./jspm_packages/" + PackageId.parse(name).path


def _graph(
    root: Dict[str, str],
    packages: Dict[str, Dict[str, str]],
    configs: Optional[Dict[str, dict]] = None,
    dev: Optional[set] = None,
) -> DependencyGraph:
    """Graph with in-memory configs (defaulting to ``{"name": <pkg name>}``)."""
    configs = configs or {}
    graph = DependencyGraph(
        resolve={alias: PackageId.parse(target) for alias, target in root.items()},
        dev_dependencies=set(dev or ()),
    )
    for name, resolve in packages.items():
        pkg_id = PackageId.parse(name)
        graph.packages[pkg_id] = PackageNode(
            resolve={alias: PackageId.parse(target) for alias, target in resolve.items()},
            config=configs.get(name, {"name": pkg_id.name}),
        )
    return graph


def _build(graph: DependencyGraph, tmp_path: Path, **kwargs):
    kwargs.setdefault("config", NO_BUILTINS)
    return asyncio.run(build_import_map(graph, tmp_path, **kwargs))


def test_root_dependency_entries(tmp_path: Path) -> None:
    """Root aliases map to main, folder and remapped subpaths."""
    graph = _graph(
        {"a": "npm:a@1.0.0"},
        {"npm:a@1.0.0": {}},
        {"npm:a@1.0.0": {"name": "a", "main": "lib/a.js", "map": {"./x.js": "./y.js"}}},
    )

    import_map = _build(graph, tmp_path)

    assert import_map.imports == {
        "a": _pkg("npm:a@1.0.0") + "/lib/a.js",
        "a/": _pkg("npm:a@1.0.0") + "/",
        "a/x.js": _pkg("npm:a@1.0.0") + "/y.js",
    }
    assert import_map.scopes == {}


def test_main_defaults_to_index(tmp_path: Path) -> None:
    """Packages without main use index.js."""
    graph = _graph({"a": "npm:a@1.0.0"}, {"npm:a@1.0.0": {}}, {"npm:a@1.0.0": {}})

    import_map = _build(graph, tmp_path)

    assert import_map.imports["a"] == _pkg("npm:a@1.0.0") + "/index.js"


def test_diamond_dependency_gets_per_package_scopes(tmp_path: Path) -> None:
    """Two packages needing different versions of d each see their own d."""
    graph = _graph(
        {"b": "npm:b@1.0.0", "c": "npm:c@1.0.0"},
        {
            "npm:b@1.0.0": {"d": "npm:d@1.0.0"},
            "npm:c@1.0.0": {"d": "npm:d@2.0.0"},
            "npm:d@1.0.0": {},
            "npm:d@2.0.0": {},
        },
    )

    import_map = _build(graph, tmp_path)

    assert "d" not in import_map.imports
    assert "d/" not in import_map.imports
    b_scope = import_map.scopes[_pkg("npm:b@1.0.0") + "/"]
    c_scope = import_map.scopes[_pkg("npm:c@1.0.0") + "/"]
    assert b_scope == {
        "d": _pkg("npm:d@1.0.0") + "/index.js",
        "d/": _pkg("npm:d@1.0.0") + "/",
    }
    assert c_scope == {
        "d": _pkg("npm:d@2.0.0") + "/index.js",
        "d/": _pkg("npm:d@2.0.0") + "/",
    }


def test_dependency_matching_root_view_is_omitted(tmp_path: Path) -> None:
    """A package dependency identical to the root's alias gets no scope entry."""
    graph = _graph(
        {"b": "npm:b@1.0.0", "d": "npm:d@1.0.0"},
        {"npm:b@1.0.0": {"d": "npm:d@1.0.0"}, "npm:d@1.0.0": {}},
    )

    import_map = _build(graph, tmp_path)

    assert import_map.imports["d"] == _pkg("npm:d@1.0.0") + "/index.js"
    assert import_map.scopes == {}


def test_self_reference_is_scoped_when_not_at_root(tmp_path: Path) -> None:
    """A nested package can import itself by name."""
    graph = _graph(
        {"b": "npm:b@1.0.0"},
        {"npm:b@1.0.0": {"d": "npm:d@1.0.0"}, "npm:d@1.0.0": {}},
    )

    import_map = _build(graph, tmp_path)

    assert import_map.scopes[_pkg("npm:d@1.0.0") + "/"] == {
        "d": _pkg("npm:d@1.0.0") + "/index.js",
        "d/": _pkg("npm:d@1.0.0") + "/",
    }


def test_package_map_targets(tmp_path: Path) -> None:
    """map targets become files, dependency paths, builtins or the empty module."""
    graph = _graph(
        {"a": "npm:a@1.0.0"},
        {"npm:a@1.0.0": {"dep": "npm:dep@1.0.0"}, "npm:dep@1.0.0": {}},
        {
            "npm:a@1.0.0": {
                "name": "a",
                "main": "index.js",
                "map": {
                    "./index.js": {"browser": "./browser.js"},
                    "local": "./src/local.js",
                    "alias-main": "dep",
                    "alias-sub": "dep/lib/x.js",
                    "alias-dir/": "dep/lib/",
                    "stream": "stream",
                    "util": {"node": "util", "default": False},
                    "mystery": "unknown-thing",
                },
            },
            "npm:dep@1.0.0": {"name": "dep", "main": "dep.js"},
        },
    )

    import_map = _build(graph, tmp_path)

    a = _pkg("npm:a@1.0.0")
    dep = _pkg("npm:dep@1.0.0")
    assert import_map.imports["a"] == a + "/browser.js"
    assert import_map.scopes[a + "/"] == {
        "alias-dir/": dep + "/lib/",
        "alias-main": dep + "/dep.js",
        "alias-sub": dep + "/lib/x.js",
        "dep": dep + "/dep.js",
        "dep/": dep + "/",
        "local": a + "/src/local.js",
        "stream": SHIM + "/stream.js",
        "util": SHIM + "/@empty.js",
    }


def test_unknown_map_target_is_skipped_with_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Targets that resolve to nothing are logged and left out."""
    graph = _graph(
        {"a": "npm:a@1.0.0"},
        {"npm:a@1.0.0": {}},
        {"npm:a@1.0.0": {"map": {"mystery": "unknown-thing"}}},
    )

    with caplog.at_level("WARNING", logger="importmapper.importmap.builder"):
        import_map = _build(graph, tmp_path)

    assert import_map.scopes == {}
    assert "unknown-thing" in caplog.text


def test_builtins_at_top_level(tmp_path: Path) -> None:
    """Builtins map to the shim; browser-unimplemented ones to the empty module."""
    graph = _graph(
        {"path": "npm:path-browserify@1.0.0"},
        {"npm:path-browserify@1.0.0": {}},
    )

    browser = _build(graph, tmp_path, config=MapperConfig())
    node = _build(graph, tmp_path, config=MapperConfig(), env=Environment(node=True))

    assert browser.imports["fs"] == SHIM + "/@empty.js"
    assert browser.imports["events"] == SHIM + "/events.js"
    assert browser.imports["path"] == _pkg("npm:path-browserify@1.0.0") + "/index.js"
    assert node.imports["fs"] == SHIM + "/fs.js"
    assert "@empty" not in browser.imports


def test_builtins_alias_is_not_populated(tmp_path: Path) -> None:
    """The builtins package alias is skipped at the root and in packages."""
    graph = _graph(
        {"jspm-node-builtins": "npm:@jspm/node-builtins@0.1.2", "a": "npm:a@1.0.0"},
        {"npm:a@1.0.0": {"jspm-node-builtins": "npm:@jspm/node-builtins@0.1.2"}},
    )

    import_map = _build(graph, tmp_path)

    assert set(import_map.imports) == {"a", "a/"}
    assert import_map.scopes == {}


def test_dev_dependencies_dropped_for_production(tmp_path: Path) -> None:
    """Development-only root aliases are left out of production maps."""
    graph = _graph(
        {"app": "npm:app@1.0.0", "test-lib": "npm:test-lib@1.0.0"},
        {"npm:app@1.0.0": {}, "npm:test-lib@1.0.0": {}},
        dev={"test-lib"},
    )

    dev_map = _build(graph, tmp_path)
    prod_map = _build(graph, tmp_path, env=Environment(production=True))
    no_dev_map = _build(graph, tmp_path, env=Environment(dev=False))

    assert "test-lib" in dev_map.imports
    assert "test-lib" not in prod_map.imports
    assert "test-lib" not in no_dev_map.imports
    assert "app" in prod_map.imports


def test_package_cycle_terminates(tmp_path: Path) -> None:
    """Cyclic package dependencies are visited once each."""
    graph = _graph(
        {"a": "npm:a@1.0.0"},
        {"npm:a@1.0.0": {"b": "npm:b@1.0.0"}, "npm:b@1.0.0": {"a": "npm:a@1.0.0"}},
    )

    import_map = _build(graph, tmp_path)

    assert import_map.scopes[_pkg("npm:a@1.0.0") + "/"]["b"] == _pkg("npm:b@1.0.0") + "/index.js"


def test_build_is_deterministic(tmp_path: Path) -> None:
    """Building the same graph twice yields byte-identical JSON."""
    graph = _graph(
        {"z": "npm:z@1.0.0", "b": "npm:b@1.0.0", "c": "npm:c@1.0.0"},
        {
            "npm:z@1.0.0": {},
            "npm:b@1.0.0": {"d": "npm:d@1.0.0"},
            "npm:c@1.0.0": {"d": "npm:d@2.0.0"},
            "npm:d@1.0.0": {},
            "npm:d@2.0.0": {},
        },
    )

    first = _build(graph, tmp_path, config=MapperConfig())
    second = _build(graph, tmp_path, config=MapperConfig())

    assert first.to_json() == second.to_json()
    assert list(first.imports) == sorted(first.imports)


def test_map_base_prefixes_project_path(tmp_path: Path) -> None:
    """Values are relative to the map base, not the project."""
    project = tmp_path / "project"
    project.mkdir()
    graph = _graph({"a": "npm:a@1.0.0"}, {"npm:a@1.0.0": {}})

    import_map = _build(graph, project, map_base=tmp_path)

    assert import_map.imports["a"] == "./project/jspm_packages/npm/a@1.0.0/index.js"


def _install(project: Path, name: str, pjson: dict) -> None:
    pkg_dir = project / "jspm_packages" / PackageId.parse(name).path
    pkg_dir.mkdir(parents=True, exist_ok=True)
    (pkg_dir / "package.json").write_text(json.dumps(pjson), encoding="utf-8")


def test_shared_package_config_is_read_once(tmp_path: Path) -> None:
    """A diamond-shared package's package.json is read a single time."""
    graph = DependencyGraph(
        resolve={"b": PackageId.parse("npm:b@1.0.0"), "c": PackageId.parse("npm:c@1.0.0")},
        packages={
            PackageId.parse("npm:b@1.0.0"): PackageNode(resolve={"d": PackageId.parse("npm:d@1.0.0")}),
            PackageId.parse("npm:c@1.0.0"): PackageNode(resolve={"d": PackageId.parse("npm:d@1.0.0")}),
            PackageId.parse("npm:d@1.0.0"): PackageNode(),
        },
    )
    for name in ("npm:b@1.0.0", "npm:c@1.0.0", "npm:d@1.0.0"):
        _install(tmp_path, name, {"name": PackageId.parse(name).name})

    builder = PackageMapBuilder(graph, tmp_path, config=NO_BUILTINS)
    import_map = asyncio.run(builder.build())

    assert builder.reader.disk_reads == 3
    assert import_map.scopes[_pkg("npm:b@1.0.0") + "/"]["d"] == _pkg("npm:d@1.0.0") + "/index.js"


def test_missing_package_config_fails(tmp_path: Path) -> None:
    """A package without an installed package.json is a hard error."""
    graph = DependencyGraph(
        resolve={"a": PackageId.parse("npm:a@1.0.0")},
        packages={PackageId.parse("npm:a@1.0.0"): PackageNode()},
    )

    with pytest.raises(ConfigError) as excinfo:
        asyncio.run(build_import_map(graph, tmp_path, config=NO_BUILTINS))

    assert excinfo.value.package == "npm:a@1.0.0"


def test_invalid_builtins_package_fails(tmp_path: Path) -> None:
    """A malformed builtins package name is a configuration error."""
    with pytest.raises(ConfigError):
        PackageMapBuilder(DependencyGraph(), tmp_path, config=MapperConfig(builtins_package="nope"))
