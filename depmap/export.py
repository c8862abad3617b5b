"""JSON-ready view of a resolution result."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .models import Module
from .resolver import ResolutionResult


def module_to_dict(module: Module) -> Dict[str, Any]:
    return {
        "name": module.name,
        "content_root": module.content_root,
        "source_roots": [
            {
                "path": entry.path,
                "kind": entry.kind.ide_kind,
                "package_prefix": entry.package_prefix,
            }
            for entry in module.source_roots
        ],
        "module_dependencies": [
            {"module": dependency.target, "exported": dependency.exported}
            for dependency in module.module_dependencies
        ],
        "library_dependencies": [
            {
                "library": dependency.library_id,
                "paths": list(dependency.paths),
                "exported": dependency.exported,
            }
            for dependency in module.library_dependencies
        ],
        "target_addresses": list(module.target_addresses),
        "build_file": module.build_file,
        "merged": module.merged,
    }


def module_graph_to_dict(result: ResolutionResult) -> Dict[str, Any]:
    """Serialise modules and diagnostics for the CLI and service mode."""
    diagnostics: List[Dict[str, Any]] = [
        {
            "kind": diagnostic.kind,
            "level": logging.getLevelName(diagnostic.level).lower(),
            "subject": diagnostic.subject,
            "message": diagnostic.message,
        }
        for diagnostic in result.diagnostics
    ]
    return {
        "modules": [module_to_dict(module) for module in result.graph],
        "diagnostics": diagnostics,
    }


__all__ = ["module_graph_to_dict", "module_to_dict"]
