from __future__ import annotations

import pytest

from depmap.models import ResolutionContext
from tests._fixtures.payload_builder import PayloadBuilder


@pytest.fixture
def payload() -> PayloadBuilder:
    """Provide an empty dependency map builder."""
    return PayloadBuilder()


@pytest.fixture
def context() -> ResolutionContext:
    """Full (non-preview) resolution without a work directory."""
    return ResolutionContext()
