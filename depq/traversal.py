"""Graph traversal used by path finding, listing, and rendering.

Both walks visit every module reachable from the start at most once and
return silently when the start is not a member of the graph.  A visitor
returning ``False`` stops the whole walk, not just the current branch.
"""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Callable, Optional

from depq.graph import Graph
from depq.types import ModuleId, ModulePath, ModuleSet

# visit(module, edges, path) -> keep_going
VisitFn = Callable[[ModuleId, ModuleSet, Optional[ModulePath]], bool]


# ---------------------------------------------------------------------------
# Depth first
# ---------------------------------------------------------------------------


def depth_first(graph: Graph, start: str, visit: VisitFn) -> None:
    """Walk *graph* depth first from *start*, calling *visit* on each module.

    The walk keeps the current path as an explicit stack instead of
    recursing, so arbitrarily deep import chains are fine.  Each visitor
    call receives the path from *start* to the visited module; an edge
    back into the current path is treated like any other visited module
    and skipped.
    """
    if not graph.has_node(start):
        return

    path: list[ModuleId] = [ModuleId(start)]
    visited: set[str] = {start}
    if not visit(ModuleId(start), graph.edges(start), ModulePath(path)):
        return

    while path:
        for module in graph.edges(path[-1]):
            if module in visited:
                continue
            path.append(module)
            visited.add(module)
            if not visit(module, graph.edges(module), ModulePath(path)):
                return
            break
        else:
            path.pop()  # backtrack


# ---------------------------------------------------------------------------
# Depth last
# ---------------------------------------------------------------------------


def hop_distances(graph: Graph, start: str) -> dict[ModuleId, int]:
    """Return the minimum hop distance from *start* to every reachable module.

    Modules appear in the result in the order they were first settled.
    """
    if not graph.has_node(start):
        return {}

    distances: dict[ModuleId, int] = {ModuleId(start): 0}
    settled: set[str] = set()
    queue: deque[tuple[ModuleId, int]] = deque([(ModuleId(start), 0)])
    while queue:
        module, distance = queue.popleft()
        best = distances.get(module)
        if best is not None and best < distance:
            continue
        if module in settled and best == distance:
            continue
        settled.add(module)
        distances[module] = distance
        for dep in graph.edges(module):
            queue.append((dep, distance + 1))
    return distances


def depth_last(graph: Graph, start: str, visit: VisitFn) -> None:
    """Walk *graph* level by level from *start*.

    Every module at hop distance ``d`` is visited before any module at
    ``d + 1``.  The order inside one level is not part of the contract.
    Visitors always receive ``None`` as the path.
    """
    distances = hop_distances(graph, start)
    if not distances:
        return

    levels: dict[int, list[ModuleId]] = defaultdict(list)
    for module, distance in distances.items():
        levels[distance].append(module)

    for distance in range(max(levels) + 1):
        for module in levels[distance]:
            if not visit(module, graph.edges(module), None):
                return
