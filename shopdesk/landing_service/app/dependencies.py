"""Dependency helpers for landing service."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopdesk.common import ServiceSettings, lifespan_session
from shopdesk.uploads_service.app.dependencies import get_upload_storage
from shopdesk.uploads_service.app.repository import UploadRepository
from shopdesk.uploads_service.app.services import UploadsService
from shopdesk.uploads_service.app.storage import UploadStorageProtocol

from .cache import LandingCache
from .repository import LandingRepository
from .services import LandingDocument, LandingService


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with lifespan_session(session_factory) as session:
        yield session


def get_landing_cache(request: Request) -> LandingCache[LandingDocument]:
    cache = getattr(request.app.state, "landing_cache", None)
    if cache is None:
        settings: ServiceSettings = request.app.state.settings
        cache = LandingCache(settings.landing_cache_ttl_seconds)
        request.app.state.landing_cache = cache
    return cache


def get_landing_service(
    session: AsyncSession = Depends(get_session),
    cache: LandingCache[LandingDocument] = Depends(get_landing_cache),
) -> LandingService:
    return LandingService(LandingRepository(session), cache)


def get_section_image_uploads(
    session: AsyncSession = Depends(get_session),
    storage: UploadStorageProtocol = Depends(get_upload_storage),
) -> UploadsService:
    """Uploads service sharing the landing request's session."""

    return UploadsService(UploadRepository(session), storage)
