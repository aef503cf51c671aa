"""Engine and session management for the shared shopdesk database.

Every service talks to the same relational store, so engines and session
factories are cached per URL and shared between the apps running in one
process.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import ServiceSettings

_LOGGER = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./shopdesk.db"

_engines: dict[str, AsyncEngine] = {}
_session_factories: dict[str, async_sessionmaker[AsyncSession]] = {}


def _engine_options(database_url: str) -> dict[str, Any]:
    # SQLite connections are local files; pinging them on checkout buys nothing.
    if make_url(database_url).get_backend_name() == "sqlite":
        return {}
    return {"pool_pre_ping": True}


def create_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    """Return the process-wide engine for ``database_url``, creating it on first use."""

    engine = _engines.get(database_url)
    if engine is None:
        options = {**_engine_options(database_url), **kwargs}
        engine = create_async_engine(database_url, **options)
        _engines[database_url] = engine
        _LOGGER.debug("Created engine for %s", safe_url(database_url))
    return engine


def get_session_factory(database_url: str) -> async_sessionmaker[AsyncSession]:
    factory = _session_factories.get(database_url)
    if factory is None:
        # Responses are serialised after commit, so loaded attributes must survive it.
        factory = async_sessionmaker(create_engine(database_url), expire_on_commit=False)
        _session_factories[database_url] = factory
    return factory


@asynccontextmanager
async def lifespan_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Yield one session per request: commit on success, roll back on any error."""

    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()


def resolve_database_url(settings: ServiceSettings, fallback: str = DEFAULT_DATABASE_URL) -> str:
    database_url = settings.database_url or fallback
    _LOGGER.info("%s using database %s", settings.app_name, safe_url(database_url))
    return database_url


def safe_url(database_url: str) -> str:
    """Render ``database_url`` with any password masked."""

    return make_url(database_url).render_as_string(hide_password=True)


async def dispose_engines() -> None:
    """Close every cached engine; the next ``create_engine`` call starts fresh."""

    engines = list(_engines.values())
    _engines.clear()
    _session_factories.clear()
    for engine in engines:
        await engine.dispose()
    if engines:
        _LOGGER.debug("Disposed %d database engine(s)", len(engines))
