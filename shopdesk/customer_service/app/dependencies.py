"""Dependency helpers for customer service."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopdesk.common import ServiceSettings, lifespan_session

from .repository import CustomerRepository
from .services import CustomerService


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with lifespan_session(session_factory) as session:
        yield session


def get_customer_service(request: Request, session: AsyncSession = Depends(get_session)) -> CustomerService:
    """Return a customer service bound to the current session."""

    settings: ServiceSettings = request.app.state.settings
    return CustomerService(CustomerRepository(session), portal_token_ttl_days=settings.portal_token_ttl_days)
