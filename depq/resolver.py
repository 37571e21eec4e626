"""Module resolution: turning an import name into a canonical module.

The builder only relies on the :class:`Resolver` protocol.  The
:class:`PythonResolver` implementation finds modules on disk the way the
interpreter's path finder does (without importing anything) and reads their
imports with ``ast``.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from importlib.machinery import EXTENSION_SUFFIXES
from pathlib import Path
from typing import Protocol, Sequence

from depq.errors import ResolutionError
from depq.imports import (
    ImportStatement,
    absolutize,
    collect_imports,
    file_to_module_name,
    find_test_files,
)
from depq.types import ModuleId

logger = logging.getLogger(__name__)

STDLIB_MODULES: frozenset[str] = frozenset(sys.stdlib_module_names) | frozenset(
    sys.builtin_module_names
)


# ---------------------------------------------------------------------------
# Boundary types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModuleInfo:
    """Everything the builder needs to know about one resolved module."""

    name: ModuleId
    imports: tuple[str, ...] = ()
    test_imports: tuple[str, ...] = ()
    is_stdlib: bool = False
    directory: Path | None = None
    file: Path | None = None


class Resolver(Protocol):
    def resolve(self, name: str, base_dir: Path) -> ModuleInfo:
        """Return the canonical module for *name*, or raise ``ResolutionError``."""
        ...


def is_stdlib_module(name: str) -> bool:
    return name.partition(".")[0] in STDLIB_MODULES


# ---------------------------------------------------------------------------
# Python resolver
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Location:
    kind: str  # "package" | "module" | "extension" | "namespace" | "builtin"
    file: Path | None = None
    directory: Path | None = None


def _looks_like_path(name: str) -> bool:
    return (
        name.startswith((".", "/", "~"))
        or "/" in name
        or os.sep in name
        or name.endswith(".py")
    )


def _is_dotted_identifier(name: str) -> bool:
    return bool(name) and all(part.isidentifier() for part in name.split("."))


@dataclass
class PythonResolver:
    """Resolve Python modules against a list of search roots.

    Roots are tried in order: the ``base_dir`` handed to :meth:`resolve`,
    then ``search_path``, then (when ``use_sys_path`` is set) the
    directories on the running interpreter's ``sys.path``.  Results are
    memoised for the lifetime of the resolver.
    """

    search_path: Sequence[Path] = ()
    use_sys_path: bool = True
    _cache: dict[tuple[str, Path], ModuleInfo] = field(default_factory=dict, repr=False)
    _locations: dict[tuple[str, tuple[Path, ...]], _Location | None] = field(
        default_factory=dict, repr=False
    )

    def resolve(self, name: str, base_dir: Path) -> ModuleInfo:
        base_dir = Path(base_dir).expanduser().resolve()
        key = (name, base_dir)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        roots = self._roots(base_dir)
        module_name = self._path_to_module(name, base_dir, roots) if _looks_like_path(name) else name
        if not _is_dotted_identifier(module_name):
            raise ResolutionError(name, "not a valid module name")

        location = self._locate(module_name, roots)
        if location is None:
            raise ResolutionError(name, "module not found on the search path")

        info = self._load(ModuleId(module_name), location, roots)
        self._cache[key] = info
        return info

    # -- search roots --

    def _roots(self, base_dir: Path) -> tuple[Path, ...]:
        candidates = [base_dir, *(Path(p) for p in self.search_path)]
        if self.use_sys_path:
            candidates.extend(Path(p) for p in sys.path if p)
        roots: dict[Path, None] = {}
        for candidate in candidates:
            resolved = candidate.expanduser().resolve()
            if resolved.is_dir():
                roots[resolved] = None
        return tuple(roots)

    def _path_to_module(self, name: str, base_dir: Path, roots: Sequence[Path]) -> str:
        target = (base_dir / Path(name).expanduser()).resolve()
        if not target.exists():
            raise ResolutionError(name, f"no such file or directory: {target}")
        containing = [root for root in roots if target != root and target.is_relative_to(root)]
        if not containing:
            raise ResolutionError(name, f"{target} is not inside any search root")
        # The deepest root gives the name the module's own imports use.
        return file_to_module_name(target, max(containing, key=lambda root: len(root.parts)))

    # -- lookup --

    def _locate(self, module_name: str, roots: tuple[Path, ...]) -> _Location | None:
        key = (module_name, roots)
        if key not in self._locations:
            self._locations[key] = self._find(module_name, roots)
        return self._locations[key]

    @staticmethod
    def _find(module_name: str, roots: Sequence[Path]) -> _Location | None:
        if not _is_dotted_identifier(module_name):
            return None
        if module_name in sys.builtin_module_names:
            return _Location("builtin")

        *parents, last = module_name.split(".")
        namespace: Path | None = None
        for root in roots:
            parent_dir = root.joinpath(*parents)
            package_dir = parent_dir / last
            init = package_dir / "__init__.py"
            if init.is_file():
                return _Location("package", init, package_dir)
            source = parent_dir / f"{last}.py"
            if source.is_file():
                return _Location("module", source, parent_dir)
            for suffix in EXTENSION_SUFFIXES:
                extension = parent_dir / f"{last}{suffix}"
                if extension.is_file():
                    return _Location("extension", extension, parent_dir)
            if namespace is None and package_dir.is_dir():
                namespace = package_dir

        if namespace is not None:
            return _Location("namespace", None, namespace)
        if is_stdlib_module(module_name):
            # Frozen or otherwise file-less standard library module.
            return _Location("builtin")
        return None

    # -- metadata --

    def _load(self, name: ModuleId, location: _Location, roots: tuple[Path, ...]) -> ModuleInfo:
        is_stdlib = is_stdlib_module(name)
        if location.file is None or location.kind == "extension":
            return ModuleInfo(
                name=name,
                is_stdlib=is_stdlib,
                directory=location.directory,
                file=location.file,
            )

        package = name if location.kind == "package" else name.rpartition(".")[0]
        imports = self._file_imports(name, location.file, package, roots)

        test_imports: list[str] = []
        if not is_stdlib:
            parent_package = name.rpartition(".")[0]
            directory = location.file.parent
            if location.kind == "package":
                directory = directory.parent
            for test_file in find_test_files(location.file):
                if test_file.parent == directory:
                    test_package = parent_package
                else:
                    test_package = f"{parent_package}.tests" if parent_package else "tests"
                for imp in self._file_imports(name, test_file, test_package, roots):
                    if imp not in test_imports:
                        test_imports.append(imp)

        logger.debug(
            "resolved %s -> %s (%d imports, %d test imports)",
            name, location.file, len(imports), len(test_imports),
        )
        return ModuleInfo(
            name=name,
            imports=tuple(imports),
            test_imports=tuple(test_imports),
            is_stdlib=is_stdlib,
            directory=location.directory,
            file=location.file,
        )

    def _file_imports(
        self,
        name: ModuleId,
        path: Path,
        package: str,
        roots: tuple[Path, ...],
    ) -> list[str]:
        try:
            source = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ResolutionError(name, f"could not read {path}: {exc}") from exc
        try:
            statements = collect_imports(source, filename=str(path))
        except SyntaxError as exc:
            raise ResolutionError(
                name, f"syntax error in {path} (line {exc.lineno}): {exc.msg}"
            ) from exc

        found: dict[str, None] = {}
        for statement in statements:
            absolute = absolutize(statement, package)
            if absolute is None:
                logger.debug("%s: relative import beyond top-level package skipped", path)
                continue
            for target in self._import_targets(absolute, roots):
                found[target] = None
        return list(found)

    def _import_targets(self, statement: ImportStatement, roots: tuple[Path, ...]) -> list[str]:
        """Prefer ``pkg.name`` when ``from pkg import name`` names a submodule.

        Only the imported module is recorded, never the enclosing packages
        that importing it initialises, the same as for ``import pkg.sub``.
        Recording them would give every module an edge to each of its
        parent packages and turn most package-internal imports into cycles.
        ``pkg`` is still recorded when one of the names is not a submodule.
        """
        if not statement.names:
            return [statement.module]
        targets: list[str] = []
        needs_parent = False
        for imported in statement.names:
            candidate = f"{statement.module}.{imported}"
            if self._locate(candidate, roots) is not None:
                targets.append(candidate)
            else:
                needs_parent = True
        if needs_parent:
            targets.insert(0, statement.module)
        return targets
