"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncIterator

import pytest

from taskapi.core.config import Settings
from taskapi.core.db_client import DocumentStore
from taskapi.core.schema import create_store


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway database in test mode."""
    return Settings(
        database_path=str(tmp_path / "tasks.db"),
        environment="test",
        logfire_token=None,
    )


@pytest.fixture
async def store(tmp_path) -> AsyncIterator[DocumentStore]:
    """An open document store with every collection initialized."""
    async with create_store(str(tmp_path / "store.db")) as document_store:
        yield document_store
