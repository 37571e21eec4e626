"""Adjacency-map graph of module dependencies."""

from __future__ import annotations

from collections.abc import Iterable

from depq.types import ModuleId, ModuleSet


class Graph(dict):
    """Mapping of module id -> :class:`ModuleSet` of its direct dependencies.

    A module is a *member* of the graph only when it is a key.  Ids that
    appear solely inside another module's dependency set are not members;
    traversal still walks into them but sees no outgoing edges.
    """

    def ensure_node(self, module: str) -> ModuleSet:
        """Return the dependency set of *module*, registering it if absent."""
        try:
            return self[module]
        except KeyError:
            deps = self[ModuleId(module)] = ModuleSet()
            return deps

    def has_node(self, module: str) -> bool:
        return module in self

    def edges(self, module: str) -> ModuleSet:
        """Return the dependency set of *module* without registering it."""
        deps = self.get(module)
        return deps if deps is not None else ModuleSet()

    def add_path(self, path: Iterable[str]) -> None:
        """Insert every consecutive edge of *path* into the graph.

        The last module of the path is registered even when it has no
        outgoing edges, so a single-module path adds just that node.
        """
        previous: ModuleSet | None = None
        for module in path:
            if previous is not None:
                previous.add(module)
            previous = self.ensure_node(module)

    @classmethod
    def from_dict(cls, adjacency: dict[str, Iterable[str]]) -> Graph:
        """Build a graph from a plain ``{module: [deps, ...]}`` mapping."""
        graph = cls()
        for module, deps in adjacency.items():
            node = graph.ensure_node(module)
            for dep in deps:
                node.add(dep)
        return graph

    def to_dict(self) -> dict[str, list[str]]:
        return {module: list(deps) for module, deps in self.items()}
