"""Optional YAML configuration for the ``depq`` command.

Loads ``depq.yaml`` (or the file given with ``--config``) into typed
dataclasses.  Every field is optional; a missing file yields the defaults.
Problems with the file are reported as warnings and never abort a run.

Example::

    filters:
      ignore: ["\\.tests?\\b"]
      include: ["^myapp"]
      include_tests: false
      include_stdlib: false
    resolver:
      search_path: [src]
    output:
      format: dot
      lines_of_code: true
    build:
      max_modules: 500
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("depq.yaml")

OUTPUT_FORMATS: tuple[str, ...] = ("list", "dot", "json")


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass
class FilterConfig:
    ignore: list[str] = field(default_factory=list)
    include: list[str] = field(default_factory=list)
    include_tests: bool = False
    include_stdlib: bool = False


@dataclass
class ResolverConfig:
    search_path: list[str] = field(default_factory=list)
    use_sys_path: bool = True


@dataclass
class OutputConfig:
    format: str = "list"
    lines_of_code: bool = False


@dataclass
class BuildConfig:
    max_modules: int | None = None


@dataclass
class DepqConfig:
    """Top-level configuration for the ``depq`` command."""

    filters: FilterConfig = field(default_factory=FilterConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    build: BuildConfig = field(default_factory=BuildConfig)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def _string_list(raw: Any, key: str) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if not isinstance(raw, list):
        warnings.warn(f"{key} should be a list - ignoring it", stacklevel=3)
        return []
    return [str(item) for item in raw]


def _flag(raw: Any, key: str, default: bool) -> bool:
    if raw is None:
        return default
    if not isinstance(raw, bool):
        warnings.warn(f"{key} should be true or false - using {default}", stacklevel=3)
        return default
    return raw


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        warnings.warn(f"'{name}' should be a mapping - using defaults", stacklevel=3)
        return {}
    return value


def _parse_filters(raw: dict[str, Any]) -> FilterConfig:
    return FilterConfig(
        ignore=_string_list(raw.get("ignore"), "filters.ignore"),
        include=_string_list(raw.get("include"), "filters.include"),
        include_tests=_flag(raw.get("include_tests"), "filters.include_tests", False),
        include_stdlib=_flag(raw.get("include_stdlib"), "filters.include_stdlib", False),
    )


def _parse_resolver(raw: dict[str, Any]) -> ResolverConfig:
    return ResolverConfig(
        search_path=_string_list(raw.get("search_path"), "resolver.search_path"),
        use_sys_path=_flag(raw.get("use_sys_path"), "resolver.use_sys_path", True),
    )


def _parse_output(raw: dict[str, Any]) -> OutputConfig:
    fmt = str(raw.get("format", OutputConfig.format))
    if fmt not in OUTPUT_FORMATS:
        warnings.warn(
            f"Unknown output format '{fmt}' - using '{OutputConfig.format}'",
            stacklevel=2,
        )
        fmt = OutputConfig.format
    return OutputConfig(
        format=fmt,
        lines_of_code=_flag(raw.get("lines_of_code"), "output.lines_of_code", False),
    )


def _parse_build(raw: dict[str, Any]) -> BuildConfig:
    limit = raw.get("max_modules")
    if limit is None:
        return BuildConfig()
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        warnings.warn("build.max_modules should be a positive integer - ignoring it", stacklevel=2)
        return BuildConfig()
    return BuildConfig(max_modules=limit)


def load_config(path: Path | None = None) -> DepqConfig:
    """Load a YAML config file and return a ``DepqConfig``.

    If *path* is ``None`` the default ``depq.yaml`` in the current
    directory is tried.  If the file does not exist, a default
    ``DepqConfig`` is returned.
    """
    explicit = path is not None
    if path is None:
        path = DEFAULT_CONFIG_FILE

    if not path.exists():
        if explicit:
            warnings.warn(f"Config file {path} not found - using defaults", stacklevel=2)
        return DepqConfig()

    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"Failed to parse config file {path}: {exc}", stacklevel=2)
        return DepqConfig()

    if raw is None:
        return DepqConfig()
    if not isinstance(raw, dict):
        warnings.warn(f"Config file {path} should contain a mapping - using defaults", stacklevel=2)
        return DepqConfig()

    known_keys = {"filters", "resolver", "output", "build"}
    for key in raw:
        if key not in known_keys:
            warnings.warn(f"Unknown config key '{key}' - will be ignored", stacklevel=2)

    logger.debug("loaded configuration from %s", path)
    return DepqConfig(
        filters=_parse_filters(_section(raw, "filters")),
        resolver=_parse_resolver(_section(raw, "resolver")),
        output=_parse_output(_section(raw, "output")),
        build=_parse_build(_section(raw, "build")),
    )
