"""Tests for depq.builder, with an in-memory resolver."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from conftest import expected_sample_graph, module
from depq.builder import Builder, Status, compile_patterns, max_modules
from depq.errors import ResolutionError


def _build(resolver, roots=("R",), **kwargs):
    return Builder(resolver=resolver, roots=list(roots), base_dir=Path("/src"), **kwargs).build()


class TestBuild:
    def test_simple_tree(self, make_resolver):
        resolver = make_resolver(
            module("R", ("A", "B")),
            module("A", ("C",)),
            module("B"),
            module("C"),
        )
        deps = _build(resolver)
        assert deps.forward == {"R": {"A", "B"}, "A": {"C"}, "B": set(), "C": set()}
        assert len(deps.ignored) == 0

    def test_diamond_walks_shared_module_once(self, make_resolver):
        resolver = make_resolver(
            module("A", ("B", "C")),
            module("B", ("D",)),
            module("C", ("D",)),
            module("D", ("E",)),
            module("E"),
        )
        deps = _build(resolver, roots=["A"])
        assert deps.forward["B"] == {"D"}
        assert deps.forward["C"] == {"D"}
        # D's imports are only read the first time it is added.
        assert resolver.calls.count("E") == 1

    def test_cycle(self, make_resolver):
        resolver = make_resolver(module("A", ("B",)), module("B", ("A",)))
        deps = _build(resolver, roots=["A"])
        assert deps.forward == {"A": {"B"}, "B": {"A"}}

    def test_edges_use_canonical_names(self, make_resolver):
        resolver = make_resolver(
            module("R", ("./lib",)),
            module("pkg.lib"),
            aliases={"./lib": "pkg.lib"},
        )
        deps = _build(resolver)
        assert deps.forward == {"R": {"pkg.lib"}, "pkg.lib": set()}

    def test_duplicate_imports_collapse(self, make_resolver):
        resolver = make_resolver(module("R", ("A", "A")), module("A"))
        deps = _build(resolver)
        assert list(deps.forward["R"]) == ["A"]
        assert resolver.calls.count("A") == 1

    def test_multiple_roots(self, make_resolver):
        resolver = make_resolver(module("R1", ("S",)), module("R2", ("S",)), module("S"))
        deps = _build(resolver, roots=["R1", "R2"])
        assert deps.forward == {"R1": {"S"}, "R2": {"S"}, "S": set()}

    def test_records_locations(self, make_resolver):
        resolver = make_resolver(module("R", ("a.b",)), module("a.b"))
        deps = _build(resolver)
        assert deps.locations["a.b"] == Path("/src/a/b.py")


class TestTests:
    def test_test_imports_excluded_by_default(self, make_resolver):
        resolver = make_resolver(module("R", ("A",), ("T",)), module("A"), module("T"))
        deps = _build(resolver)
        assert deps.forward == {"R": {"A"}, "A": set()}

    def test_test_imports_included(self, make_resolver):
        resolver = make_resolver(module("R", ("A",), ("T", "A")), module("A"), module("T"))
        deps = _build(resolver, include_tests=True)
        assert deps.forward == {"R": {"A", "T"}, "A": set(), "T": set()}

    def test_self_import_from_test_is_not_an_edge(self, make_resolver):
        resolver = make_resolver(module("R", (), ("R",)))
        deps = _build(resolver, include_tests=True)
        assert deps.forward == {"R": set()}


class TestFiltering:
    def test_ignore_pattern(self, make_resolver):
        resolver = make_resolver(module("R", ("X", "Y")), module("X", ("Z",)), module("Y"), module("Z"))
        deps = _build(resolver, ignored=compile_patterns(["^X$"]))
        assert deps.forward == {"R": {"Y"}, "Y": set()}
        assert set(deps.ignored) == {"X"}
        # X is resolved to learn its canonical name, but never walked.
        assert "Z" not in resolver.calls

    def test_stdlib_excluded_by_default(self, make_resolver):
        resolver = make_resolver(module("R", ("os", "A")), module("A"), module("os", stdlib=True))
        deps = _build(resolver)
        assert deps.forward == {"R": {"A"}, "A": set()}
        assert set(deps.ignored) == {"os"}

    def test_stdlib_included(self, make_resolver):
        resolver = make_resolver(module("R", ("os",)), module("os", stdlib=True))
        deps = _build(resolver, include_stdlib=True)
        assert deps.forward == {"R": {"os"}, "os": set()}

    def test_ignore_beats_include_stdlib(self, make_resolver):
        resolver = make_resolver(module("R", ("os",)), module("os", stdlib=True))
        deps = _build(resolver, include_stdlib=True, ignored=compile_patterns(["^os"]))
        assert deps.forward == {"R": set()}
        assert set(deps.ignored) == {"os"}

    def test_include_patterns(self, make_resolver):
        resolver = make_resolver(
            module("app", ("app.core", "vendor.lib")),
            module("app.core"),
            module("vendor.lib"),
        )
        deps = _build(resolver, roots=["app"], included=compile_patterns([r"^app\b"]))
        assert deps.forward == {"app": {"app.core"}, "app.core": set()}
        assert set(deps.ignored) == {"vendor.lib"}

    def test_patterns_are_unanchored(self, make_resolver):
        resolver = make_resolver(module("R", ("a.tests.x",)), module("a.tests.x"))
        deps = _build(resolver, ignored=compile_patterns([r"\.tests\."]))
        assert set(deps.ignored) == {"a.tests.x"}

    def test_ignored_root_is_logged(self, make_resolver, caplog):
        resolver = make_resolver(module("R"))
        with caplog.at_level(logging.WARNING, logger="depq.builder"):
            deps = _build(resolver, ignored=compile_patterns(["R"]))
        assert len(deps.forward) == 0
        assert set(deps.ignored) == {"R"}
        assert "ignoring root module 'R'" in caplog.text

    def test_invalid_pattern(self):
        import re

        with pytest.raises(re.error):
            compile_patterns(["("])


class TestTermination:
    def test_stops_early_without_error(self, make_resolver):
        resolver = make_resolver(
            module("R", ("A", "B")),
            module("A", ("C",)),
            module("B"),
            module("C"),
        )
        deps = _build(resolver, termination_conditions=[max_modules(2)])
        assert deps.forward == {"R": {"A"}, "A": set()}

    def test_partial_graph_stays_connected(self, make_resolver):
        resolver = make_resolver(
            module("R", ("A", "X")),
            module("A", ("B",)),
            module("B", ("C",)),
            module("C"),
            module("X"),
        )
        deps = _build(resolver, termination_conditions=[max_modules(3)])
        assert deps.forward == {"R": {"A"}, "A": {"B"}, "B": set()}
        assert "X" not in resolver.calls

    def test_condition_sees_in_progress_result(self, make_resolver):
        resolver = make_resolver(module("R", ("A",)), module("A", ("B",)), module("B"))
        sizes = []

        def condition(deps):
            sizes.append(len(deps.forward))
            return False

        _build(resolver, termination_conditions=[condition])
        assert sizes == [1, 2, 3]

    def test_stop_skips_remaining_roots(self, make_resolver):
        resolver = make_resolver(module("R1"), module("R2"))
        deps = _build(resolver, roots=["R1", "R2"], termination_conditions=[max_modules(1)])
        assert set(deps.forward) == {"R1"}
        assert "R2" not in resolver.calls

    def test_status_values(self):
        assert {s.value for s in Status} == {"continue", "stop", "fail"}


class TestFailures:
    def test_unresolvable_import_fails_build(self, make_resolver):
        resolver = make_resolver(module("R", ("missing",)))
        with pytest.raises(ResolutionError) as excinfo:
            _build(resolver)
        assert excinfo.value.module == "missing"

    def test_unresolvable_root(self, make_resolver):
        with pytest.raises(ResolutionError):
            _build(make_resolver())

    def test_deep_import_chain(self, make_resolver):
        names = [f"m{i}" for i in range(3000)]
        infos = [module(name, (nxt,)) for name, nxt in zip(names, names[1:])]
        infos.append(module(names[-1]))
        deps = _build(make_resolver(*infos), roots=[names[0]])
        assert len(deps.forward) == 3000
        assert deps.forward["m0"] == {"m1"}


# ---------------------------------------------------------------------------
# End to end against the on-disk sample project
# ---------------------------------------------------------------------------


class TestSampleProject:
    def _build(self, resolver, project, **kwargs):
        return Builder(resolver=resolver, roots=["sample"], base_dir=project, **kwargs).build()

    @pytest.mark.parametrize("include_stdlib", [False, True])
    @pytest.mark.parametrize("include_tests", [False, True])
    def test_graph(self, resolver, sample_project, include_stdlib, include_tests):
        deps = self._build(
            resolver,
            sample_project,
            include_stdlib=include_stdlib,
            include_tests=include_tests,
        )
        assert deps.forward == expected_sample_graph(
            include_stdlib=include_stdlib, include_tests=include_tests
        )
        assert set(deps.ignored) == (set() if include_stdlib else {"json"})

    def test_ignore(self, resolver, sample_project):
        deps = self._build(resolver, sample_project, ignored=compile_patterns([r"^sample\.a\.aa"]))
        assert deps.forward == {
            "sample": {"sample.a", "sample.b"},
            "sample.a": {"sample.a.ab"},
            "sample.a.ab": set(),
            "sample.b": {"sample.b.ba"},
            "sample.b.ba": set(),
        }
        assert set(deps.ignored) == {"sample.a.aa", "json"}

    def test_include(self, resolver, sample_project):
        deps = self._build(resolver, sample_project, included=compile_patterns([r"^sample(\.b.*)?$"]))
        assert deps.forward == {
            "sample": {"sample.b"},
            "sample.b": {"sample.b.ba"},
            "sample.b.ba": set(),
        }
        assert set(deps.ignored) == {"sample.a", "json"}

    def test_path_root(self, resolver, sample_project):
        deps = Builder(resolver=resolver, roots=["./sample/b"], base_dir=sample_project).build()
        assert deps.forward == {"sample.b": {"sample.b.ba"}, "sample.b.ba": set()}

    def test_locations(self, resolver, sample_project):
        deps = self._build(resolver, sample_project)
        assert deps.locations["sample.a.ab"] == (sample_project / "sample" / "a" / "ab.py").resolve()
        assert deps.locations["sample"] == (sample_project / "sample" / "__init__.py").resolve()

    def test_broken_import_fails(self, resolver, sample_project):
        (sample_project / "sample" / "c.py").write_text("import not_installed_anywhere\n")
        with pytest.raises(ResolutionError):
            self._build(resolver, sample_project, include_tests=True)
