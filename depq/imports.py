"""AST-based import extraction for a single Python source file."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from pathlib import Path


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class ImportStatement:
    """One ``import`` / ``from ... import`` target, before resolution.

    ``module`` is absolute once :func:`absolutize` has run.  ``names`` holds
    the imported attribute names of a ``from`` import (empty for plain
    ``import x``); each may turn out to be a submodule.
    """

    module: str
    level: int = 0
    names: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# AST visitor
# ---------------------------------------------------------------------------

class ImportCollector(ast.NodeVisitor):
    """Collects every import statement of a module, including nested ones."""

    def __init__(self) -> None:
        self.statements: list[ImportStatement] = []

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self.statements.append(ImportStatement(module=alias.name))
        self.generic_visit(node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        self.statements.append(
            ImportStatement(
                module=node.module or "",
                level=node.level or 0,
                names=[alias.name for alias in node.names if alias.name != "*"],
            )
        )
        self.generic_visit(node)


def collect_imports(source: str, filename: str = "<unknown>") -> list[ImportStatement]:
    """Parse *source* and return its import statements in source order.

    Raises ``SyntaxError`` when the source does not parse.
    """
    tree = ast.parse(source, filename=filename)
    collector = ImportCollector()
    collector.visit(tree)
    return collector.statements


def absolutize(statement: ImportStatement, package: str) -> ImportStatement | None:
    """Rewrite a relative import against *package*.

    Returns ``None`` when the import climbs above the top-level package.
    """
    if statement.level == 0:
        return statement

    parts = package.split(".") if package else []
    climb = statement.level - 1
    if climb >= len(parts):
        return None
    base = parts[: len(parts) - climb]
    if statement.module:
        base.append(statement.module)
    return ImportStatement(module=".".join(base), level=0, names=statement.names)


# ---------------------------------------------------------------------------
# Module naming and test files
# ---------------------------------------------------------------------------

def file_to_module_name(filepath: Path, root: Path) -> str:
    """Convert a file path to a Python module name relative to root."""
    try:
        rel = filepath.relative_to(root)
    except ValueError:
        rel = filepath

    parts = list(rel.parts)
    if parts and parts[-1].endswith(".py"):
        parts[-1] = parts[-1][:-3]
    # __init__.py -> package name
    if parts and parts[-1] == "__init__":
        parts.pop()

    return ".".join(parts) if parts else filepath.stem


def find_test_files(module_file: Path) -> list[Path]:
    """Return the existing test files that exercise *module_file*.

    Looks for ``test_<name>.py``, ``<name>_test.py`` and
    ``tests/test_<name>.py`` beside the module.  For a package
    (``pkg/__init__.py``) the lookup happens next to the package directory.
    """
    if module_file.name == "__init__.py":
        name = module_file.parent.name
        directory = module_file.parent.parent
    else:
        name = module_file.stem
        directory = module_file.parent

    candidates = [
        directory / f"test_{name}.py",
        directory / f"{name}_test.py",
        directory / "tests" / f"test_{name}.py",
    ]
    return [path for path in candidates if path.is_file()]
