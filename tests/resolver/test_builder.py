"""Tests for the module graph builder."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path

from depmap.errors import INVALID_SOURCE_ROOT, MISSING_LIBRARY_ARTIFACTS, SUPPRESSED_CYCLE
from depmap.models import LibraryDependency, ModuleDependency, ModuleGraph, ResolutionContext, SourceRootEntry
from depmap.resolver import ModuleGraphBuilder, ResolutionResult
from depmap.source_types import SourceType
from tests._fixtures.payload_builder import PayloadBuilder


def _build(payload: PayloadBuilder, context: ResolutionContext | None = None, **kwargs) -> ResolutionResult:
    builder = ModuleGraphBuilder(context or ResolutionContext(), **kwargs)
    return builder.build(payload.graph())


def _assert_root_paths_unique(graph: ModuleGraph) -> None:
    counts = Counter(entry.path for module in graph for entry in module.source_roots)
    assert [path for path, count in counts.items() if count > 1] == []


def _assert_no_two_way_edges(graph: ModuleGraph) -> None:
    for module in graph:
        for dependency in module.module_dependencies:
            target = graph.get(dependency.target)
            assert target is not None
            assert not target.depends_on(module.name)


def test_test_target_depends_on_main_target(payload: PayloadBuilder) -> None:
    payload.target("a:main", roots=["a/src/main"], target_type="SOURCE")
    payload.target("a:test", roots=["a/src/test"], targets=["a:main"], target_type="TEST")

    result = _build(payload)
    graph = result.graph

    assert graph.names() == ["a_main", "a_test"]
    main = graph.get("a_main")
    test = graph.get("a_test")
    assert main is not None and test is not None
    assert main.content_root == "a/src/main"
    assert main.source_roots == (SourceRootEntry("a/src/main", SourceType.SOURCE),)
    assert test.source_roots == (SourceRootEntry("a/src/test", SourceType.TEST),)
    assert test.module_dependencies == (ModuleDependency("a_main", exported=True),)
    assert main.module_dependencies == ()
    assert result.diagnostics == ()


def test_shared_root_owned_by_single_root_target(payload: PayloadBuilder) -> None:
    payload.target("a:x", roots=["a/src"])
    payload.target("a:y", roots=["a/src", "a/gen"])

    graph = _build(payload).graph

    assert graph.names() == ["a_x", "a_y"]
    x = graph.get("a_x")
    y = graph.get("a_y")
    assert x is not None and y is not None
    assert [entry.path for entry in x.source_roots] == ["a/src"]
    assert [entry.path for entry in y.source_roots] == ["a/gen"]
    assert y.content_root == "a"
    assert y.module_dependencies == (ModuleDependency("a_x", exported=True),)
    assert not any(module.merged for module in graph)
    _assert_root_paths_unique(graph)


def test_shared_root_between_multi_root_targets_is_merged(payload: PayloadBuilder) -> None:
    payload.target(
        "a:x",
        roots=["a/common", "a/x"],
        targets=["b:lib"],
        libraries=["lib:guava"],
    )
    payload.target(
        "a:y",
        roots=["a/common", "a/y"],
        targets=["b:other"],
        libraries=["lib:junit"],
    )
    payload.target("b:lib", roots=["b/lib"])
    payload.target("b:other", roots=["b/other"])
    payload.library("lib:guava", "/jars/guava.jar")
    payload.library("lib:junit", "/jars/junit.jar")

    graph = _build(payload).graph

    assert graph.names() == ["a_x", "a_y", "b_lib", "b_other", "a_common"]
    merged = graph.get("a_common")
    assert merged is not None
    assert merged.merged
    assert merged.content_root == "a/common"
    assert merged.target_addresses == ("a:x", "a:y")
    assert [entry.path for entry in merged.source_roots] == ["a/common"]
    assert merged.module_dependencies == (
        ModuleDependency("b_lib", exported=False),
        ModuleDependency("b_other", exported=False),
    )
    assert merged.library_dependencies == (
        LibraryDependency("lib:guava", ("/jars/guava.jar",), exported=False),
        LibraryDependency("lib:junit", ("/jars/junit.jar",), exported=False),
    )

    x = graph.get("a_x")
    assert x is not None
    assert [entry.path for entry in x.source_roots] == ["a/x"]
    assert x.module_dependencies == (
        ModuleDependency("a_common", exported=True),
        ModuleDependency("b_lib", exported=True),
    )
    assert x.library_dependencies == (
        LibraryDependency("lib:guava", ("/jars/guava.jar",), exported=True),
    )
    assert graph.module_for_target("a:x") is x
    _assert_root_paths_unique(graph)


def test_missing_library_artifacts_are_a_warning(payload: PayloadBuilder) -> None:
    payload.target("a:x", roots=["a/src"], libraries=["lib:foo"])

    result = _build(payload)

    module = result.graph.get("a_x")
    assert module is not None
    assert module.library_dependencies == ()
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert warning.kind == MISSING_LIBRARY_ARTIFACTS
    assert "lib:foo" in warning.message


def test_missing_library_is_reported_once_per_id(payload: PayloadBuilder) -> None:
    payload.target("a:x", roots=["a/common", "a/x"], libraries=["lib:foo"])
    payload.target("a:y", roots=["a/common", "a/y"], libraries=["lib:foo"])

    result = _build(payload)

    assert result.graph.names() == ["a_x", "a_y", "a_common"]
    missing = result.diagnostics_of(MISSING_LIBRARY_ARTIFACTS)
    assert [(warning.subject, warning.message) for warning in missing] == [
        ("a_common", "No info for library: lib:foo")
    ]


def test_missing_library_artifacts_are_silent_in_preview(payload: PayloadBuilder) -> None:
    payload.target("a:x", roots=["a/src"], libraries=["lib:foo"])

    result = _build(payload, ResolutionContext(generate_jars=False))

    assert result.graph.get("a_x").library_dependencies == ()  # type: ignore[union-attr]
    assert result.diagnostics == ()


def test_scala_library_is_never_a_library_edge(payload: PayloadBuilder) -> None:
    payload.target(
        "a:x",
        roots=["a/src"],
        libraries=["org.scala-lang:scala-library:2.10.4", "lib:foo"],
    )
    payload.target(":scala-library", roots=["3rdparty/scala"])
    payload.library("org.scala-lang:scala-library:2.10.4", "/jars/scala-library.jar")
    payload.library("lib:foo", "/jars/foo.jar")

    result = _build(payload)

    assert result.graph.names() == ["a_x"]
    module = result.graph.get("a_x")
    assert module is not None
    assert [dependency.library_id for dependency in module.library_dependencies] == ["lib:foo"]
    assert result.warnings == []


def test_empty_targets_produce_no_module(payload: PayloadBuilder) -> None:
    payload.target("a:empty", target_type="dependencies")
    payload.target("a:x", roots=["a/src"], targets=["a:empty", "unknown:target"])

    result = _build(payload)

    assert result.graph.names() == ["a_x"]
    assert result.graph.get("a_x").module_dependencies == ()  # type: ignore[union-attr]
    assert result.graph.module_for_target("a:empty") is None


def test_targets_without_roots_fall_back_to_their_directory(payload: PayloadBuilder) -> None:
    payload.target("3rdparty/jvm:guava", libraries=["lib:guava"])
    payload.target("a:x", roots=["a/src"], targets=["3rdparty/jvm:guava"])
    payload.library("lib:guava", "/jars/guava.jar")

    graph = _build(payload).graph

    guava = graph.get("3rdparty_jvm_guava")
    assert guava is not None
    assert guava.content_root == "3rdparty/jvm"
    assert guava.source_roots == ()
    assert guava.library_dependencies[0].paths == ("/jars/guava.jar",)
    assert graph.get("a_x").module_dependencies == (  # type: ignore[union-attr]
        ModuleDependency("3rdparty_jvm_guava", exported=True),
    )


def test_cycles_keep_the_first_discovered_direction(payload: PayloadBuilder) -> None:
    payload.target("a:x", roots=["a/x"], targets=["a:y"])
    payload.target("a:y", roots=["a/y"], targets=["a:x"])

    result = _build(payload)
    graph = result.graph

    assert graph.get("a_x").module_dependencies == (ModuleDependency("a_y"),)  # type: ignore[union-attr]
    assert graph.get("a_y").module_dependencies == ()  # type: ignore[union-attr]
    suppressed = result.diagnostics_of(SUPPRESSED_CYCLE)
    assert len(suppressed) == 1
    assert suppressed[0].level == logging.DEBUG
    assert result.warnings == []
    _assert_no_two_way_edges(graph)


def test_root_ownership_edge_wins_over_later_reverse_dependency(payload: PayloadBuilder) -> None:
    payload.target("a:x", roots=["a/src"], targets=["a:y"])
    payload.target("a:y", roots=["a/src", "a/gen"])

    graph = _build(payload).graph

    assert graph.get("a_y").module_dependencies == (ModuleDependency("a_x"),)  # type: ignore[union-attr]
    assert graph.get("a_x").module_dependencies == ()  # type: ignore[union-attr]
    _assert_no_two_way_edges(graph)


def test_duplicate_and_self_dependencies_are_skipped(payload: PayloadBuilder) -> None:
    payload.target("a:x", roots=["a/src"], targets=["a:x"])
    payload.target("a:y", roots=["a/src", "a/gen"], targets=["a:x"])

    graph = _build(payload).graph

    assert graph.get("a_x").module_dependencies == ()  # type: ignore[union-attr]
    assert graph.get("a_y").module_dependencies == (ModuleDependency("a_x"),)  # type: ignore[union-attr]


def test_same_path_with_different_prefixes_is_registered_once(payload: PayloadBuilder) -> None:
    payload.target("a:x", roots=[("a/src", None)])
    payload.target("a:y", roots=[("a/src", "com.example")])

    graph = _build(payload).graph

    _assert_root_paths_unique(graph)
    assert graph.get("a_y").module_dependencies == (ModuleDependency("a_x"),)  # type: ignore[union-attr]


def test_invalid_source_roots_are_skipped(payload: PayloadBuilder) -> None:
    payload.target("a:x", roots=["/one/src", "/two/src"])
    payload.target("a:ok", roots=["a/ok"])

    result = _build(payload)

    module = result.graph.get("a_x")
    assert module is not None
    assert module.content_root == "a"
    assert module.source_roots == ()
    assert len(result.diagnostics_of(INVALID_SOURCE_ROOT)) == 2
    assert result.graph.get("a_ok").source_roots  # type: ignore[union-attr]


def test_resource_targets_register_the_raw_root(payload: PayloadBuilder) -> None:
    payload.target(
        "a:resources",
        roots=[("a/resources/com/example", "com.example")],
        target_type="RESOURCE",
    )

    module = _build(payload).graph.get("a_resources")

    assert module is not None
    assert module.content_root == "a/resources"
    assert module.source_roots == (
        SourceRootEntry("a/resources", SourceType.RESOURCE, "com.example"),
    )


def test_absolute_roots_with_work_dir(payload: PayloadBuilder, tmp_path: Path) -> None:
    shared = str(tmp_path / "a" / "common")
    payload.target("a:x", roots=[shared, str(tmp_path / "a" / "x")])
    payload.target("a:y", roots=[shared, str(tmp_path / "a" / "y")])

    result = _build(payload, ResolutionContext(work_dir=tmp_path))

    merged = result.graph.get("a_common")
    assert merged is not None
    assert merged.content_root == "a/common"
    assert [entry.path for entry in merged.source_roots] == [shared]
    assert result.diagnostics == ()


def test_build_file_lookup_is_injected(payload: PayloadBuilder) -> None:
    payload.target("a:x", roots=["a/src"])
    payload.target("b:y", roots=["b/src"])
    lookups: list[str] = []

    def lookup(directory: str) -> str | None:
        lookups.append(directory)
        return {"a": "a/BUILD"}.get(directory)

    graph = _build(payload, build_file_lookup=lookup).graph

    assert graph.get("a_x").build_file == "a/BUILD"  # type: ignore[union-attr]
    assert graph.get("b_y").build_file == "b"  # type: ignore[union-attr]
    assert lookups == ["a", "b"]


def test_resolving_twice_gives_identical_graphs(payload: PayloadBuilder) -> None:
    payload.target("a:x", roots=["a/common", "a/x"], targets=["a:y", "c:z"], libraries=["lib:foo"])
    payload.target("a:y", roots=["a/common", "a/y"], targets=["a:x"])
    payload.target("c:z", roots=["c/src"], targets=["a:x"])
    payload.library("lib:foo", "/jars/foo.jar")
    graph = payload.graph()
    builder = ModuleGraphBuilder(ResolutionContext())

    first = builder.build(graph)
    second = builder.build(graph)

    assert first.graph == second.graph
    assert first.diagnostics == second.diagnostics
    _assert_no_two_way_edges(first.graph)
    _assert_root_paths_unique(first.graph)
