"""Lines-of-code metric attached to graph nodes for display."""

from __future__ import annotations

import logging
import tokenize
from pathlib import Path

from radon.raw import analyze

from depq.builder import Dependencies
from depq.types import ModuleId

logger = logging.getLogger(__name__)


def _count_file(path: Path) -> int:
    # tokenize.open honours the file's encoding cookie.
    with tokenize.open(path) as f:
        source = f.read()
    return analyze(source).sloc


def count_lines_of_code(path: Path) -> int:
    """Count the source lines of *path* (radon's ``sloc``).

    Blank lines and comment-only lines are not counted.  A directory
    counts the ``.py`` files directly inside it.  Raises ``OSError``,
    ``SyntaxError`` or ``tokenize.TokenError`` for files that cannot be
    read or tokenized.
    """
    if path.is_dir():
        return sum(_count_file(child) for child in sorted(path.glob("*.py")))
    if path.suffix != ".py":
        return 0
    return _count_file(path)


def measure(deps: Dependencies) -> dict[ModuleId, int]:
    """Return lines of code for every graph member with a known location."""
    result: dict[ModuleId, int] = {}
    for module in deps.forward:
        location = deps.locations.get(module)
        if location is None:
            continue
        try:
            result[module] = count_lines_of_code(location)
        except (OSError, SyntaxError, UnicodeDecodeError, tokenize.TokenError) as exc:
            logger.warning("could not count lines of %s (%s): %s", module, location, exc)
    return result
