"""Async engine and session factory for the SQL stores.

``Database.init`` builds one engine per process; the stores open a short
session per operation from ``Database.sessionmaker``. Sync SQLite URLs are
upgraded to ``sqlite+aiosqlite``; in-memory SQLite shares one connection
through a ``StaticPool`` so every session sees the same tables, and its
sessions are handed out one at a time.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from . import models  # noqa: F401 - registers tables on the metadata
from .base import metadata

if TYPE_CHECKING:
    from rolekeeper.settings import Settings

__all__ = ["Database", "DatabaseConfig", "SessionFactory", "build_async_url"]

SQLITE_ASYNC_DRIVER = "sqlite+aiosqlite"

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    url: str
    echo: bool = False
    sqlite_journal_mode: str = "WAL"
    sqlite_synchronous: str = "NORMAL"
    sqlite_busy_timeout_ms: int = 30_000

    @classmethod
    def from_settings(cls, settings: Settings) -> DatabaseConfig:
        return cls(url=settings.database_dsn, echo=bool(settings.database_echo))


def build_async_url(cfg: DatabaseConfig) -> str:
    """Runtime URL; SQLite always goes through aiosqlite."""
    url = make_url(cfg.url)
    if url.get_backend_name() == "sqlite":
        url = url.set(drivername=SQLITE_ASYNC_DRIVER)
    return url.render_as_string(hide_password=False)


def _sqlite_file(url: URL) -> Path | None:
    """Database file for a file-backed SQLite URL, ``None`` for in-memory."""
    database = (url.database or "").strip()
    if not database or database == ":memory:":
        return None
    if database.startswith("file:"):
        return None if (url.query or {}).get("mode") == "memory" else Path(database[5:])
    return Path(database)


def _install_sqlite_pragmas(engine: AsyncEngine, cfg: DatabaseConfig) -> None:
    pragmas = (
        "PRAGMA foreign_keys=ON",
        f"PRAGMA busy_timeout={int(cfg.sqlite_busy_timeout_ms)}",
        f"PRAGMA journal_mode={cfg.sqlite_journal_mode}",
        f"PRAGMA synchronous={cfg.sqlite_synchronous}",
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_conn, _):
        cur = dbapi_conn.cursor()
        try:
            for pragma in pragmas:
                cur.execute(pragma)
        finally:
            cur.close()


class _SerializedSessions:
    """Session factory for a single shared connection.

    In-memory SQLite hands the same connection to every session, so a
    rollback or close in one session would discard writes made through
    another. Sessions are opened one at a time.
    """

    def __init__(self, factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = factory
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def __call__(self) -> AsyncIterator[AsyncSession]:
        async with self._lock, self._factory() as session:
            yield session


class Database:
    """Process-wide engine + session factory.

    Call ``init(cfg)`` once on startup and ``await dispose()`` on shutdown.
    """

    def __init__(self) -> None:
        self._cfg: DatabaseConfig | None = None
        self._engine: AsyncEngine | None = None
        self._sessionmaker: SessionFactory | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init(...) at startup.")
        return self._engine

    @property
    def sessionmaker(self) -> SessionFactory:
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized. Call init(...) at startup.")
        return self._sessionmaker

    def init(self, cfg: DatabaseConfig) -> None:
        """Create engine + sessionmaker; a repeat call with the same config is a no-op."""
        if self._cfg == cfg and self._engine is not None:
            return

        url = make_url(build_async_url(cfg))
        kwargs: dict[str, Any] = {"echo": cfg.echo}
        sqlite = url.get_backend_name() == "sqlite"
        shared_connection = False
        if sqlite:
            kwargs["connect_args"] = {
                "check_same_thread": False,
                "timeout": cfg.sqlite_busy_timeout_ms / 1000.0,
            }
            path = _sqlite_file(url)
            if path is None:
                kwargs["poolclass"] = StaticPool
                shared_connection = True
            else:
                path.resolve().parent.mkdir(parents=True, exist_ok=True)
        else:
            kwargs["pool_pre_ping"] = True

        engine = create_async_engine(url, **kwargs)
        if sqlite:
            _install_sqlite_pragmas(engine, cfg)

        self._cfg = cfg
        self._engine = engine
        factory = async_sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
        )
        self._sessionmaker = _SerializedSessions(factory) if shared_connection else factory

    async def create_schema(self) -> None:
        """Create any missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._cfg = None
        self._engine = None
        self._sessionmaker = None
