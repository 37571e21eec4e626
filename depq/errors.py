"""Exception hierarchy for depq."""

from __future__ import annotations


class DepqError(Exception):
    """Base class for every error depq reports to its caller."""


class ResolutionError(DepqError):
    """A module could not be located, read, or parsed."""

    def __init__(self, module: str, reason: str) -> None:
        super().__init__(f"unable to resolve {module!r}: {reason}")
        self.module = module
        self.reason = reason


class UsageError(DepqError):
    """Invalid combination of command-line flags or configuration values."""
