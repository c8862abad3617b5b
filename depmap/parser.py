"""Parsing of the build tool's dependency map into a :class:`TargetGraph`."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import MalformedPayload
from .logging import get_logger
from .models import SourceRoot, TargetGraph, TargetInfo

_LOGGER = get_logger("parser")


class _RootPayload(BaseModel):
    source_root: str
    package_prefix: Optional[str] = None


class _TargetPayload(BaseModel):
    target_type: Optional[str] = None
    roots: List[_RootPayload] = Field(default_factory=list)
    targets: List[str] = Field(default_factory=list)
    libraries: List[str] = Field(default_factory=list)

    @field_validator("roots", "targets", "libraries", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class _ProjectPayload(BaseModel):
    targets: Dict[str, _TargetPayload]
    libraries: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("libraries", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


def parse_project_info(text: str) -> TargetGraph:
    """Parse the dependency map emitted by the build tool.

    Raises :class:`MalformedPayload` when the text is empty, is not JSON, or
    does not follow the ``{"targets": {...}, "libraries": {...}}`` schema.
    Target order follows the payload.
    """
    if not text or not text.strip():
        raise MalformedPayload("No output from the build tool")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        _LOGGER.warning("Can't parse build tool output: %s", exc)
        raise MalformedPayload(f"Can't parse project structure: {exc}") from exc

    try:
        payload = _ProjectPayload.model_validate(data)
    except ValidationError as exc:
        _LOGGER.warning("Build tool output does not match the dependency map schema: %s", exc)
        raise MalformedPayload(
            f"Can't parse project structure: {exc.error_count()} schema error(s)"
        ) from exc

    targets: Dict[str, TargetInfo] = {
        address: _target_from_payload(target) for address, target in payload.targets.items()
    }
    libraries: Dict[str, Tuple[str, ...]] = {
        library_id: tuple(paths) for library_id, paths in payload.libraries.items()
    }
    _LOGGER.debug("Parsed %d targets and %d libraries", len(targets), len(libraries))
    return TargetGraph(targets=targets, libraries=libraries)


def _target_from_payload(payload: _TargetPayload) -> TargetInfo:
    roots = (
        SourceRoot(source_root=root.source_root, package_prefix=root.package_prefix or None)
        for root in payload.roots
    )
    return TargetInfo(
        target_type=payload.target_type,
        roots=_unique(roots),
        targets=_unique(payload.targets),
        libraries=_unique(payload.libraries),
    )


def _unique(items: Any) -> Tuple[Any, ...]:
    return tuple(dict.fromkeys(items))


__all__ = ["parse_project_info"]
