"""Dependency helpers for storefront service."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopdesk.common import lifespan_session

from .repository import StorefrontRepository
from .services import StorefrontService


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with lifespan_session(session_factory) as session:
        yield session


def get_storefront_service(session: AsyncSession = Depends(get_session)) -> StorefrontService:
    return StorefrontService(StorefrontRepository(session))
