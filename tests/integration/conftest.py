"""Fixtures for tests touching SQLite and the ASGI app."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from rolekeeper.infra.db import Database, DatabaseConfig


@pytest.fixture
def database_url(tmp_path) -> str:
    """File-backed SQLite database URL, one per test."""

    return f"sqlite+aiosqlite:///{tmp_path / 'rolekeeper.sqlite'}"


@pytest_asyncio.fixture
async def database(database_url: str) -> AsyncIterator[Database]:
    db = Database()
    db.init(DatabaseConfig(url=database_url))
    await db.create_schema()
    try:
        yield db
    finally:
        await db.dispose()
