#!/usr/bin/env python3
"""Query the import graph of a Python code base.

Builds the dependency graph of a root module and prints either every
module it transitively imports, or the path(s) leading to a target module.

Usage:
    depq --from <module> [--to <module>] [options]

Examples:
    depq --from myapp.cli
    depq --from myapp.cli --to myapp.db --all-paths -o dot | dot -Tsvg > paths.svg
    depq --from src/myapp --ignore '\\.tests\\b' --include-tests --loc
"""

from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, Sequence

from depq.builder import Builder, Condition, Matcher, compile_patterns, max_modules
from depq.config import OUTPUT_FORMATS, DepqConfig, load_config
from depq.errors import DepqError, UsageError
from depq.graph import Graph
from depq.lines_of_code import measure
from depq.paths import all_paths, some_path
from depq.render import LabelFn, list_modules, save_json, to_dict, to_dot
from depq.resolver import PythonResolver
from depq.types import ModuleId

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="depq",
        description="Query the module dependency graph of a Python code base.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  depq --from myapp.cli\n"
            "  depq --from myapp.cli --to myapp.db --all-paths -o dot\n"
            "  depq --from src/myapp --ignore '\\.tests\\b' --include-tests\n"
        ),
    )
    parser.add_argument(
        "--from",
        dest="from_module",
        help="Root module (dotted name or path to a file or package directory).",
    )
    parser.add_argument("--to", help="Target module for querying dependency paths.")
    parser.add_argument(
        "--ignore",
        action="append",
        default=None,
        help="Regular expression for modules to ignore. Can be specified multiple times.",
    )
    parser.add_argument(
        "--include",
        action="append",
        default=None,
        help="Regular expression for modules to include (excluding modules "
        "matching --ignore). Can be specified multiple times.",
    )
    parser.add_argument(
        "--include-tests",
        action="store_true",
        default=None,
        help="Include imports made by the modules' test files.",
    )
    parser.add_argument(
        "--include-stdlib",
        action="store_true",
        default=None,
        help="Include standard library modules.",
    )
    parser.add_argument(
        "--all-paths",
        action="store_true",
        help="Show every path to --to instead of a single one.",
    )
    parser.add_argument(
        "-o",
        "--output",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format: list (default), dot, or json.",
    )
    parser.add_argument(
        "--json-file",
        type=Path,
        default=None,
        help="With -o json, write the result to this file instead of stdout.",
    )
    parser.add_argument(
        "--loc",
        action="store_true",
        default=None,
        help="Annotate modules with their lines of code.",
    )
    parser.add_argument(
        "--max-modules",
        type=int,
        default=None,
        help="Stop building the graph once it holds this many modules.",
    )
    parser.add_argument(
        "--search-path",
        action="append",
        default=None,
        help="Extra directory to search for modules. Can be specified multiple times.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to a depq.yaml file.")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors.")
    return parser


# ---------------------------------------------------------------------------
# Option handling
# ---------------------------------------------------------------------------


def _pick(flag: Any, configured: Any) -> Any:
    return configured if flag is None else flag


def validate_args(args: argparse.Namespace, config: DepqConfig) -> None:
    """Raise ``UsageError`` for an invalid flag combination."""
    if not args.from_module:
        raise UsageError("--from must be set")
    if args.all_paths and not args.to:
        raise UsageError("--all-paths requires a --to module")
    ignore = config.filters.ignore + (args.ignore or [])
    include = config.filters.include + (args.include or [])
    overlap = set(ignore) & set(include)
    if overlap:
        raise UsageError(f"--include can not be the same as --ignore: {sorted(overlap)}")
    if args.max_modules is not None and args.max_modules < 1:
        raise UsageError("--max-modules must be a positive integer")
    if args.json_file is not None and _pick(args.output, config.output.format) != "json":
        raise UsageError("--json-file requires -o json")


def _compile(patterns: list[str], flag: str) -> list[Matcher]:
    try:
        return compile_patterns(patterns)
    except re.error as exc:
        raise UsageError(f"invalid {flag} pattern: {exc}") from exc


def make_builder(
    args: argparse.Namespace,
    config: DepqConfig,
    resolver: PythonResolver,
    root: ModuleId,
    base_dir: Path,
) -> Builder:
    conditions: list[Condition] = []
    limit = _pick(args.max_modules, config.build.max_modules)
    if limit is not None:
        conditions.append(max_modules(limit))

    return Builder(
        resolver=resolver,
        roots=[root],
        base_dir=base_dir,
        termination_conditions=conditions,
        ignored=_compile(config.filters.ignore + (args.ignore or []), "--ignore"),
        included=_compile(config.filters.include + (args.include or []), "--include"),
        include_tests=_pick(args.include_tests, config.filters.include_tests),
        include_stdlib=_pick(args.include_stdlib, config.filters.include_stdlib),
    )


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def print_list(root: ModuleId, graph: Graph, loc: dict[ModuleId, int] | None) -> None:
    label = _with_lines(loc) if loc is not None else str
    print("Modules:")
    for module in list_modules(graph, root):
        print(f"  {label(module)}")


def _with_lines(loc: dict[ModuleId, int]) -> LabelFn:
    def label(module: ModuleId) -> str:
        if module in loc:
            return f"{module} ({loc[module]} lines)"
        return module

    return label


def print_dot(root: ModuleId, graph: Graph, loc: dict[ModuleId, int] | None) -> None:
    label = _with_lines(loc) if loc is not None else None
    print(to_dot(graph, root, label), end="")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run(args: argparse.Namespace, config: DepqConfig) -> int:
    validate_args(args, config)

    base_dir = Path.cwd()
    search_path = config.resolver.search_path + (args.search_path or [])
    resolver = PythonResolver(
        search_path=[Path(p) for p in search_path],
        use_sys_path=config.resolver.use_sys_path,
    )

    from_module = resolver.resolve(args.from_module, base_dir).name
    to_module = resolver.resolve(args.to, base_dir).name if args.to else None

    deps = make_builder(args, config, resolver, from_module, base_dir).build()
    logger.info(
        "Built graph: %d module(s), %d ignored", len(deps.forward), len(deps.ignored)
    )

    result: Graph | None
    if to_module is None:
        result = deps.forward
    elif args.all_paths:
        result = all_paths(deps.forward, from_module, to_module)
    else:
        path = some_path(deps.forward, from_module, to_module)
        result = None
        if path is not None:
            result = Graph()
            result.add_path(path)

    if not result:
        if to_module is None:
            print(f"No modules found from {from_module!r}")
        else:
            print(f"No path found from {from_module!r} to {to_module!r}")
        return 1

    loc = measure(deps) if _pick(args.loc, config.output.lines_of_code) else None
    output = _pick(args.output, config.output.format)
    if output == "dot":
        print_dot(from_module, result, loc)
    elif output == "json":
        data = to_dict(result, from_module, ignored=deps.ignored, lines_of_code=loc)
        if args.json_file is not None:
            written = save_json(args.json_file, data)
            logger.info("Wrote %s", written)
        else:
            print(json.dumps(data, indent=2))
    else:
        print_list(from_module, result, loc)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(message)s")

    config = load_config(args.config)
    try:
        return run(args, config)
    except DepqError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
