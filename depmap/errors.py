"""Error taxonomy and recorded diagnostics for module graph resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass


class DepmapError(RuntimeError):
    """Base class for depmap failures."""


class MalformedPayload(DepmapError):
    """Raised when the dependency map is empty or does not match the expected schema."""


class InvalidSourceRootPath(DepmapError):
    """Raised when a source root cannot be registered under a module content root."""


INVALID_SOURCE_ROOT = "invalid-source-root"
MISSING_LIBRARY_ARTIFACTS = "missing-library-artifacts"
EXTENSION_FAILURE = "extension-failure"
SUPPRESSED_CYCLE = "suppressed-cycle"
BAD_COMMON_ROOT = "bad-common-root"


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal condition recorded while resolving a module graph."""

    kind: str
    message: str
    subject: str
    level: int = logging.WARNING

    @property
    def is_warning(self) -> bool:
        return self.level >= logging.WARNING


__all__ = [
    "BAD_COMMON_ROOT",
    "DepmapError",
    "Diagnostic",
    "EXTENSION_FAILURE",
    "INVALID_SOURCE_ROOT",
    "InvalidSourceRootPath",
    "MISSING_LIBRARY_ARTIFACTS",
    "MalformedPayload",
    "SUPPRESSED_CYCLE",
]
