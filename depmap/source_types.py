"""Classification of build target types into source root kinds."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .logging import get_logger

_LOGGER = get_logger("source_types")


class SourceType(Enum):
    """Semantic kind of a source root."""

    SOURCE = "source"
    TEST = "test"
    RESOURCE = "resource"
    TEST_RESOURCE = "test-resource"

    @property
    def is_resource(self) -> bool:
        return self in (SourceType.RESOURCE, SourceType.TEST_RESOURCE)

    @property
    def ide_kind(self) -> str:
        """Return the source root kind understood by the IDE model."""
        return self.value


DEFAULT_SOURCE_TYPE = SourceType.SOURCE


def source_type_for_target_type(target_type: Optional[str]) -> SourceType:
    """Map a target type tag such as ``TEST`` or ``resource`` to a :class:`SourceType`.

    Missing tags and tags the build tool invented after this mapping was
    written degrade to :data:`DEFAULT_SOURCE_TYPE`.
    """
    if target_type is None:
        return DEFAULT_SOURCE_TYPE
    key = target_type.strip().upper().replace("-", "_")
    try:
        return SourceType[key]
    except KeyError:
        _LOGGER.warning("Got invalid source type %s, using %s", target_type, DEFAULT_SOURCE_TYPE.value)
        return DEFAULT_SOURCE_TYPE


__all__ = ["DEFAULT_SOURCE_TYPE", "SourceType", "source_type_for_target_type"]
