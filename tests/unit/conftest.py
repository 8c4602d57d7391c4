"""Unit test conftest — no database, BigQuery, GCS or SFTP required."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_conn() -> AsyncMock:
    """An asyncpg-like connection whose queries are all mocked."""
    conn = AsyncMock()
    conn.execute.return_value = "UPDATE 1"
    conn.fetch.return_value = []
    conn.fetchrow.return_value = None
    return conn


@pytest.fixture
def mock_transaction(mock_conn: AsyncMock) -> MagicMock:
    """Stand-in for stage_export.db.transaction() yielding `mock_conn`."""
    cm = AsyncMock()
    cm.__aenter__.return_value = mock_conn
    return MagicMock(return_value=cm)
