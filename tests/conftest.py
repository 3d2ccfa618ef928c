"""Shared test fixtures for tgcd."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tgcd.config import get_settings
from tgcd.domain.models import Blake2bHash


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Clear the lru_cache on get_settings between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_hash():
    """Factory for deterministic hashes: make_hash("a") != make_hash("b")."""

    def _make(seed: str = "content") -> Blake2bHash:
        return Blake2bHash.of(seed.encode())

    return _make


@pytest.fixture
def mock_pool():
    """Mock asyncpg pool.

    acquire() and conn.transaction() return sync-callable async context
    managers, like asyncpg's. Returns (pool, conn, transaction).
    """
    pool = MagicMock()
    conn = AsyncMock()
    acquire_cm = AsyncMock()
    acquire_cm.__aenter__.return_value = conn
    acquire_cm.__aexit__.return_value = False
    pool.acquire.return_value = acquire_cm

    transaction = AsyncMock()
    transaction.__aenter__.return_value = transaction
    transaction.__aexit__.return_value = False
    conn.transaction = MagicMock(return_value=transaction)
    return pool, conn, transaction
