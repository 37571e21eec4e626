"""Shared fixtures for depq tests."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from depq.errors import ResolutionError
from depq.graph import Graph
from depq.resolver import ModuleInfo, PythonResolver
from depq.types import ModuleId


class FakeResolver:
    """In-memory resolver keyed by module name.

    ``aliases`` maps alternate spellings to a canonical name, mimicking a
    resolver that canonicalises paths.
    """

    def __init__(
        self,
        modules: dict[str, ModuleInfo],
        aliases: dict[str, str] | None = None,
    ) -> None:
        self.modules = modules
        self.aliases = aliases or {}
        self.calls: list[str] = []

    def resolve(self, name: str, base_dir: Path) -> ModuleInfo:
        self.calls.append(name)
        canonical = self.aliases.get(name, name)
        try:
            return self.modules[canonical]
        except KeyError:
            raise ResolutionError(name, "module not found") from None


def module(
    name: str,
    imports: tuple[str, ...] = (),
    test_imports: tuple[str, ...] = (),
    *,
    stdlib: bool = False,
) -> ModuleInfo:
    return ModuleInfo(
        name=ModuleId(name),
        imports=imports,
        test_imports=test_imports,
        is_stdlib=stdlib,
        file=Path(f"/src/{name.replace('.', '/')}.py"),
    )


@pytest.fixture
def make_resolver():
    """Build a :class:`FakeResolver` from ``module(...)`` entries."""

    def _make(*infos: ModuleInfo, aliases: dict[str, str] | None = None) -> FakeResolver:
        return FakeResolver({info.name: info for info in infos}, aliases)

    return _make


@pytest.fixture
def diamond() -> Graph:
    """``A -> {B, C}``, ``B -> D``, ``C -> D``."""
    return Graph.from_dict({"A": ["B", "C"], "B": ["D"], "C": ["D"], "D": []})


# ---------------------------------------------------------------------------
# On-disk sample project
# ---------------------------------------------------------------------------

# The import layout of the sample project:
#
#          sample
#         /      \
#    sample.a   sample.b
#     /    \        |
#   .aa    .ab     .ba
#    |
#  .aaa
#
# Every module except the root imports ``json``.  Test files exist for
# sample.a, sample.a.ab, sample.b.ba (each importing sample.c) and for the
# root (importing only itself).
SAMPLE_FILES: dict[str, str] = {
    "sample/__init__.py": """
        from . import a, b
    """,
    "sample/a/__init__.py": """
        import json

        from sample.a import aa, ab
    """,
    "sample/a/aa/__init__.py": """
        import json

        from .aaa import VALUE
    """,
    "sample/a/aa/aaa.py": """
        import json

        VALUE = json.dumps({})
    """,
    "sample/a/ab.py": """
        import json
    """,
    "sample/b/__init__.py": """
        import json

        from sample.b import ba
    """,
    "sample/b/ba.py": """
        import json
    """,
    "sample/c.py": """
        import json
    """,
    # tests
    "test_sample.py": """
        import sample
    """,
    "sample/test_a.py": """
        import sample.a
        import sample.c
    """,
    "sample/a/ab_test.py": """
        from . import ab
        from .. import c
    """,
    "sample/b/tests/test_ba.py": """
        from sample.b import ba
        from ... import c
    """,
}


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """Write the sample project under ``tmp_path`` and return its root."""
    for rel, source in SAMPLE_FILES.items():
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
    return tmp_path


@pytest.fixture
def resolver() -> PythonResolver:
    """A resolver that only looks at the project directory it is given."""
    return PythonResolver(use_sys_path=False)


def expected_sample_graph(*, include_stdlib: bool, include_tests: bool) -> Graph:
    expected = Graph.from_dict({
        "sample": ["sample.a", "sample.b"],
        "sample.a": ["sample.a.aa", "sample.a.ab"],
        "sample.a.aa": ["sample.a.aa.aaa"],
        "sample.a.aa.aaa": [],
        "sample.a.ab": [],
        "sample.b": ["sample.b.ba"],
        "sample.b.ba": [],
    })
    if include_stdlib:
        for name in list(expected):
            if name != "sample":
                expected[name].add("json")
        expected.ensure_node("json")
    if include_tests:
        for name in ("sample.a", "sample.a.ab", "sample.b.ba"):
            expected[name].add("sample.c")
        deps = expected.ensure_node("sample.c")
        if include_stdlib:
            deps.add("json")
    return expected
