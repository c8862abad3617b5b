"""Common-root merging, module graph building and resolver extensions."""

from .builder import ModuleGraphBuilder, ResolutionResult
from .common_roots import CommonRoots, MergedRoot, collect_root_users, merge_common_roots
from .extensions import ExtensionOutcome, ExtensionRegistry, ResolverExtension, run_extensions
from .paths import BuildFileLookup, BuildFileProbe

__all__ = [
    "BuildFileLookup",
    "BuildFileProbe",
    "CommonRoots",
    "ExtensionOutcome",
    "ExtensionRegistry",
    "MergedRoot",
    "ModuleGraphBuilder",
    "ResolutionResult",
    "ResolverExtension",
    "collect_root_users",
    "merge_common_roots",
    "run_extensions",
]
