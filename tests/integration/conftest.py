"""Integration test fixtures.

Provides a fully wired Provider over a throwaway Elm home (see
tests/conftest.py), a respx router standing in for the package registry,
and a recording resolver.
"""

from __future__ import annotations

import pytest
import respx

from elmdeps.config import Settings
from elmdeps.provider import Provider
from tests.factories import REGISTRY_URL, NewestVersionResolver


@pytest.fixture()
def registry():
    with respx.mock(base_url=REGISTRY_URL, assert_all_called=False) as router:
        yield router


@pytest.fixture()
def resolver() -> NewestVersionResolver:
    return NewestVersionResolver()


@pytest.fixture()
def provider(registry: respx.MockRouter, settings: Settings, resolver: NewestVersionResolver):
    with Provider(resolver, settings) as p:
        yield p
