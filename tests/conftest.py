"""Shared fixtures: a scripted generator in place of the Gemini call."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.main import app, get_generator
from tests.fakes import FakeGenerator


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def client(generator):
    app.dependency_overrides[get_generator] = lambda: generator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
