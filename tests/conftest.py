"""Shared fixtures for the infrastructure engine tests."""

from __future__ import annotations

import pytest

from tests.lib.fakes import FakeOverpassClient, way


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def make_way():
    return way


@pytest.fixture
def fake_client():
    return FakeOverpassClient()
