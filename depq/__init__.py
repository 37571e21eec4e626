"""Module dependency queries for Python code bases.

Builds the import graph of one or more root modules and answers questions
about it: every transitive dependency, one path or all paths between two
modules, and list / DOT / JSON renderings.
"""

from depq.builder import (
    Builder,
    Condition,
    Dependencies,
    Status,
    compile_patterns,
    max_modules,
)
from depq.errors import DepqError, ResolutionError, UsageError
from depq.graph import Graph
from depq.paths import all_paths, all_paths_matching, some_path, some_path_matching
from depq.render import list_modules, save_json, to_dict, to_dot
from depq.resolver import ModuleInfo, PythonResolver, Resolver
from depq.traversal import depth_first, depth_last, hop_distances
from depq.types import ModuleId, ModulePath, ModuleSet

__all__ = [
    "Builder",
    "Condition",
    "Dependencies",
    "DepqError",
    "Graph",
    "ModuleId",
    "ModuleInfo",
    "ModulePath",
    "ModuleSet",
    "PythonResolver",
    "ResolutionError",
    "Resolver",
    "Status",
    "UsageError",
    "all_paths",
    "all_paths_matching",
    "compile_patterns",
    "depth_first",
    "depth_last",
    "hop_distances",
    "list_modules",
    "max_modules",
    "save_json",
    "some_path",
    "some_path_matching",
    "to_dict",
    "to_dot",
]
