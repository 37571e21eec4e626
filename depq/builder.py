"""Dependency graph construction.

The builder starts from the root modules, resolves each module through a
:class:`~depq.resolver.Resolver`, filters it, and walks its imports.  The
walk keeps an explicit stack of frames instead of recursing, and every step
reports a tagged :class:`Status` so stopping early and failing are handled
visibly at each call site.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Iterator, Sequence

from depq.errors import ResolutionError
from depq.graph import Graph
from depq.resolver import ModuleInfo, Resolver
from depq.types import ModuleId, ModuleSet

logger = logging.getLogger(__name__)

Matcher = Callable[[str], bool]


@dataclass
class Dependencies:
    """Result of one build: the dependency graph plus every filtered module."""

    forward: Graph = field(default_factory=Graph)
    ignored: ModuleSet = field(default_factory=ModuleSet)
    # module -> source file (or directory) reported by the resolver
    locations: dict[ModuleId, Path] = field(default_factory=dict)


Condition = Callable[[Dependencies], bool]


def compile_patterns(patterns: Iterable[str]) -> list[Matcher]:
    """Compile regular expressions into unanchored ``search`` predicates.

    Raises ``re.error`` for an invalid pattern.
    """
    return [re.compile(pattern).search for pattern in patterns]


def max_modules(limit: int) -> Condition:
    """Termination condition: stop once the graph holds *limit* modules."""

    def condition(deps: Dependencies) -> bool:
        return len(deps.forward) >= limit

    return condition


# ---------------------------------------------------------------------------
# Walk bookkeeping
# ---------------------------------------------------------------------------


class Status(Enum):
    CONTINUE = "continue"
    STOP = "stop"
    FAIL = "fail"


@dataclass(frozen=True)
class _Outcome:
    status: Status
    # Canonical id when the module is part of the graph, None when filtered.
    module: ModuleId | None = None
    error: ResolutionError | None = None


@dataclass
class _Frame:
    module: ModuleId
    pending: Iterator[str]


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


@dataclass
class Builder:
    """Configuration for building a dependency graph.

    A module is accepted when it matches none of ``ignored``, is not a
    standard library module (unless ``include_stdlib``), and matches at
    least one of ``included`` when that list is non-empty.
    """

    resolver: Resolver
    roots: Sequence[str]
    base_dir: Path = field(default_factory=Path.cwd)
    # Stop building as soon as ANY condition holds.
    termination_conditions: Sequence[Condition] = ()
    ignored: Sequence[Matcher] = ()
    included: Sequence[Matcher] = ()
    include_tests: bool = False
    include_stdlib: bool = False

    def build(self) -> Dependencies:
        """Build the graph for all roots.

        A tripped termination condition is not an error: the graph built so
        far is returned.  Raises ``ResolutionError`` when a module cannot be
        resolved.
        """
        deps = Dependencies()
        for root in self.roots:
            outcome = self._add_module(deps, root)
            if outcome.status is Status.FAIL:
                raise outcome.error
            if outcome.status is Status.STOP:
                logger.info(
                    "termination condition met after %d module(s)", len(deps.forward)
                )
                break
            if outcome.module is None:
                logger.warning("ignoring root module %r", root)
        return deps

    # -- walk --

    def _add_module(self, deps: Dependencies, name: str) -> _Outcome:
        """Add *name* and everything it imports to *deps*."""
        outcome, frame = self._enter(deps, name)
        if frame is None:
            return outcome

        stack = [frame]
        while stack:
            top = stack[-1]
            imp = next(top.pending, None)
            if imp is None:
                stack.pop()
                if stack:
                    deps.forward.ensure_node(stack[-1].module).add(top.module)
                continue

            child, child_frame = self._enter(deps, imp)
            if child.status is Status.STOP:
                self._link_stack(deps, stack, child.module)
                return child
            if child.status is Status.FAIL:
                return child
            if child_frame is not None:
                stack.append(child_frame)
            elif child.module is not None:
                deps.forward.ensure_node(top.module).add(child.module)
        return outcome

    @staticmethod
    def _link_stack(deps: Dependencies, stack: list[_Frame], last: ModuleId | None) -> None:
        """Draw the edges of the frames still being walked when a build stops.

        Keeps a partial graph connected to its root.
        """
        modules = [frame.module for frame in stack]
        if last is not None:
            modules.append(last)
        for parent, child in zip(modules, modules[1:]):
            deps.forward.ensure_node(parent).add(child)

    def _enter(self, deps: Dependencies, name: str) -> tuple[_Outcome, _Frame | None]:
        """Resolve, filter, and register one module.

        Returns a frame when the module is new and its imports still need
        walking.
        """
        try:
            info = self.resolver.resolve(name, self.base_dir)
        except ResolutionError as exc:
            return _Outcome(Status.FAIL, error=exc), None

        module = info.name
        if not self._is_accepted(info):
            deps.ignored.add(module)
            return _Outcome(Status.CONTINUE), None

        if deps.forward.has_node(module):
            # Already walked (or being walked); don't walk its imports again.
            return _Outcome(Status.CONTINUE, module), None

        deps.forward.ensure_node(module)
        if info.file is not None:
            deps.locations[module] = info.file
        elif info.directory is not None:
            deps.locations[module] = info.directory
        logger.debug("added %s", module)

        for condition in self.termination_conditions:
            if condition(deps):
                return _Outcome(Status.STOP, module), None

        return _Outcome(Status.CONTINUE, module), _Frame(module, iter(self._imports_of(info)))

    # -- filtering --

    def _imports_of(self, info: ModuleInfo) -> list[str]:
        candidates = list(info.imports)
        if self.include_tests:
            candidates.extend(info.test_imports)
        imports: list[str] = []
        seen: set[str] = set()
        for imp in candidates:
            # A test importing the module under test is not a self-dependency.
            if imp == info.name or imp in seen:
                continue
            seen.add(imp)
            imports.append(imp)
        return imports

    def _is_ignored(self, module: str) -> bool:
        return any(match(module) for match in self.ignored)

    def _is_included(self, module: str) -> bool:
        if not self.included:
            return True
        return any(match(module) for match in self.included)

    def _is_accepted(self, info: ModuleInfo) -> bool:
        if self._is_ignored(info.name):
            return False
        if info.is_stdlib and not self.include_stdlib:
            return False
        return self._is_included(info.name)
