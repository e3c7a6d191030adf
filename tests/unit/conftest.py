"""Unit-specific fixtures (HTTP mocked with respx, no real network)."""

from __future__ import annotations

import pytest
import respx

from elmdeps.bridge import BlockingRequestBridge
from tests.factories import REGISTRY_URL


@pytest.fixture()
def registry():
    """respx router standing in for package.elm-lang.org."""
    with respx.mock(base_url=REGISTRY_URL, assert_all_called=False) as router:
        yield router


@pytest.fixture()
def bridge():
    b = BlockingRequestBridge()
    yield b
    b.shut_down()
