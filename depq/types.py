"""Value types shared by the graph, traversal, and builder modules."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, MutableSet
from typing import NewType

# Canonical dotted module name, e.g. ``app.services.users``.
ModuleId = NewType("ModuleId", str)


class ModuleSet(MutableSet):
    """Set of module ids that iterates in insertion order.

    Backed by a ``dict`` so depth-first walks and DOT output are
    reproducible from one run to the next.
    """

    __slots__ = ("_items",)

    def __init__(self, modules: Iterable[str] = ()) -> None:
        self._items: dict[ModuleId, None] = dict.fromkeys(modules)

    def __contains__(self, module: object) -> bool:
        return module in self._items

    def __iter__(self) -> Iterator[ModuleId]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def add(self, module: str) -> None:
        self._items[ModuleId(module)] = None

    def discard(self, module: str) -> None:
        self._items.pop(ModuleId(module), None)

    def __repr__(self) -> str:
        return f"ModuleSet({list(self._items)!r})"


class ModulePath(tuple):
    """A walk through the graph, from the start module to ``last``.

    Immutable: traversal hands every visitor its own value, so visitors may
    keep the path around after returning.
    """

    __slots__ = ()

    def __new__(cls, modules: Iterable[str] = ()) -> ModulePath:
        return super().__new__(cls, modules)

    @property
    def last(self) -> ModuleId:
        return self[-1]

    def popped(self) -> ModulePath:
        """Return the path without its last module."""
        return ModulePath(self[:-1])

    def extended(self, module: str) -> ModulePath:
        return ModulePath((*self, module))

    def __repr__(self) -> str:
        return f"ModulePath({list(self)!r})"
