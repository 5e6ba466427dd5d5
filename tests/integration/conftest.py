"""Fixtures for HTTP-level tests."""

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from taskapi.core.config import Settings
from taskapi.main import create_app
from tests.helpers import make_task_payload


@pytest.fixture
def client(test_settings: Settings) -> Iterator[TestClient]:
    """A TestClient whose lifespan opens a fresh store per test."""
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def create_task(client: TestClient):
    """Create a task through the API and return its JSON representation."""

    def _create(**overrides: Any) -> dict[str, Any]:
        response = client.post("/tasks", json=make_task_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["data"]["task"]

    return _create
