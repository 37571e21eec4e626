"""Path queries built on the depth-first walk.

``some_path`` returns the first path the walk discovers, which is not
necessarily the shortest.

``all_paths`` returns a graph that contains every simple path from the
start to a target.  A simple path never re-enters the start and never
leaves a target, so those edges are cut first; the result is then every
remaining edge ``u -> v`` where ``u`` is reachable from the start and ``v``
reaches a target.  On an acyclic graph that is exactly the union of the
paths.  With cycles it may also hold a module whose only routes to a
target revisit a module already on the route: deciding whether a module
lies on some simple path is NP-complete for directed graphs, so the
result errs on the side of completeness.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Optional

from depq.graph import Graph
from depq.traversal import depth_first
from depq.types import ModuleId, ModulePath, ModuleSet

Matcher = Callable[[ModuleId], bool]


def some_path_matching(
    graph: Graph,
    start: str,
    matches: Matcher,
) -> ModulePath | None:
    """Return the first path from *start* to a module accepted by *matches*."""
    if not graph.has_node(start):
        return None

    found: list[ModulePath] = []

    def visit(module: ModuleId, _edges: ModuleSet, path: Optional[ModulePath]) -> bool:
        if matches(module):
            found.append(path)
            return False
        return True

    depth_first(graph, start, visit)
    return found[0] if found else None


def some_path(graph: Graph, start: str, end: str) -> ModulePath | None:
    """Return one path from *start* to *end*, or ``None``.

    ``None`` is returned both when no path exists and when either module is
    not a member of *graph*.
    """
    if not graph.has_node(end):
        return None
    return some_path_matching(graph, start, lambda module: module == end)


def _cut(graph: Graph, start: str, matches: Matcher) -> Graph:
    """Copy *graph* without edges into *start* or out of a target."""
    cut = Graph()
    for module, deps in graph.items():
        node = cut.ensure_node(module)
        if matches(module):
            continue
        for dep in deps:
            if dep != start:
                node.add(dep)
    return cut


def _reversed(graph: Graph) -> Graph:
    reverse = Graph()
    for module, deps in graph.items():
        reverse.ensure_node(module)
        for dep in deps:
            reverse.ensure_node(dep).add(module)
    return reverse


def all_paths_matching(
    graph: Graph,
    start: str,
    matches: Matcher,
) -> Graph | None:
    """Return a graph holding every simple path from *start* to a module
    accepted by *matches*.

    Targets get no outgoing edges, so a route that passes one target on its
    way to another is not included.
    """
    if not graph.has_node(start):
        return None

    cut = _cut(graph, start, matches)

    # Depth-first order keeps the result (and its DOT rendering) stable.
    forward: list[ModuleId] = []

    def visit(module: ModuleId, _edges: ModuleSet, _path: Optional[ModulePath]) -> bool:
        forward.append(module)
        return True

    depth_first(cut, start, visit)

    # Every module that reaches a target, walking the reversed edges.
    reverse = _reversed(cut)
    to_target = {module for module in forward if matches(module)}
    queue = deque(to_target)
    while queue:
        for dependent in reverse.edges(queue.popleft()):
            if dependent not in to_target:
                to_target.add(dependent)
                queue.append(dependent)

    paths = Graph()
    for module in forward:
        if module not in to_target:
            continue
        node = paths.ensure_node(module)
        for dep in cut.edges(module):
            if dep in to_target:
                node.add(dep)
    return paths


def all_paths(graph: Graph, start: str, end: str) -> Graph | None:
    """Return a graph holding every simple path from *start* to *end*.

    ``None`` when either module is not a member of *graph*; an empty graph
    when both are members but *end* is unreachable.
    """
    if not graph.has_node(end):
        return None
    return all_paths_matching(graph, start, lambda module: module == end)
