"""Dependency helpers for checkout service."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopdesk.cart_service.app.repository import CartRepository
from shopdesk.cart_service.app.services import CartService
from shopdesk.common import ServiceSettings, lifespan_session

from .repository import CheckoutRepository
from .services import CheckoutService


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield one AsyncSession; the whole checkout commits or rolls back with it."""

    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with lifespan_session(session_factory) as session:
        yield session


def get_checkout_service(request: Request, session: AsyncSession = Depends(get_session)) -> CheckoutService:
    settings: ServiceSettings = request.app.state.settings
    cart_service = CartService(CartRepository(session), expiry_days=settings.cart_expiry_days)
    return CheckoutService(CheckoutRepository(session), cart_service)
