"""Resolve build tool dependency maps into IDE module graphs."""

from .errors import MalformedPayload
from .models import Module, ModuleGraph, ResolutionContext, SourceRoot, TargetGraph, TargetInfo
from .orchestrator import Resolver, resolve_payload
from .parser import parse_project_info
from .resolver import ResolutionResult, ResolverExtension

__all__ = [
    "MalformedPayload",
    "Module",
    "ModuleGraph",
    "ResolutionContext",
    "ResolutionResult",
    "Resolver",
    "ResolverExtension",
    "SourceRoot",
    "TargetGraph",
    "TargetInfo",
    "parse_project_info",
    "resolve_payload",
]
