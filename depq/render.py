"""List, DOT, and JSON projections of a dependency graph.

All output walks the graph from a root, so only modules reachable from it
appear.  DOT output follows depth-first visiting order, which is stable
because :class:`~depq.types.ModuleSet` iterates in insertion order.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from depq.graph import Graph
from depq.traversal import depth_first, depth_last
from depq.types import ModuleId, ModulePath, ModuleSet

LabelFn = Callable[[ModuleId], str]


def list_modules(graph: Graph, root: str) -> list[ModuleId]:
    """Return every module reachable from *root*, nearest first."""
    modules: list[ModuleId] = []

    def visit(module: ModuleId, _edges: ModuleSet, _path: Optional[ModulePath]) -> bool:
        modules.append(module)
        return True

    depth_last(graph, root, visit)
    return modules


def _quote(label: str) -> str:
    return '"' + label.replace("\\", "\\\\").replace('"', '\\"') + '"'


def to_dot(graph: Graph, root: str, label: LabelFn | None = None) -> str:
    """Render the graph reachable from *root* as a Graphviz ``digraph``.

    Nodes get small integer ids in first-seen order; *label* maps a module
    to its display text (the module id by default).
    """
    ids: dict[ModuleId, int] = {}

    def node_id(module: ModuleId) -> int:
        if module not in ids:
            ids[module] = len(ids)
        return ids[module]

    lines = ["digraph depq {"]

    def visit(module: ModuleId, edges: ModuleSet, _path: Optional[ModulePath]) -> bool:
        current = node_id(module)
        text = label(module) if label is not None else module
        lines.append(f"{current} [label={_quote(text)}];")
        for dep in edges:
            lines.append(f"{current} -> {node_id(dep)};")
        return True

    depth_first(graph, root, visit)
    lines.append("}")
    return "\n".join(lines) + "\n"


def to_dict(
    graph: Graph,
    root: str,
    *,
    ignored: Iterable[str] | None = None,
    lines_of_code: dict[ModuleId, int] | None = None,
) -> dict[str, Any]:
    """Return a JSON-serialisable view of the graph reachable from *root*."""
    modules: list[dict[str, Any]] = []
    for module in list_modules(graph, root):
        entry: dict[str, Any] = {
            "name": module,
            "imports": list(graph.edges(module)),
        }
        if lines_of_code is not None and module in lines_of_code:
            entry["lines_of_code"] = lines_of_code[module]
        modules.append(entry)

    data: dict[str, Any] = {"root": root, "modules": modules}
    if ignored is not None:
        data["ignored"] = sorted(ignored)
    return data


def save_json(
    path: Path,
    data: Any,
    *,
    ensure_ascii: bool = False,
    indent: int = 2,
) -> Path:
    """Write *data* as pretty-printed JSON, creating parent directories.

    Returns the resolved output path.
    """
    path = path.resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii)
        f.write("\n")
    return path
