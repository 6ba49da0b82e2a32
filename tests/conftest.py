"""Pytest configuration for all tests."""

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from studyvault.core.config import get_settings
from studyvault.domain.entities import DEFAULT_SCHEMA
from studyvault.infrastructure.persistence.database import EmbeddedStore


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """URL of a fresh SQLite file in the test's temporary directory."""
    return f"sqlite+aiosqlite:///{tmp_path / 'studyvault-test.db'}"


@pytest_asyncio.fixture
async def store(database_url: str) -> AsyncGenerator[EmbeddedStore, None]:
    """Create an embedded store with the default schema on a temporary file."""
    embedded_store = EmbeddedStore(database_url, DEFAULT_SCHEMA)
    yield embedded_store
    await embedded_store.close()


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are cached process-wide; never leak them between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
