"""Dependency helpers for uploads service."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopdesk.common import ServiceSettings, lifespan_session

from .repository import UploadRepository
from .services import UploadsService
from .storage import LocalUploadStorage, UploadStorageProtocol


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with lifespan_session(session_factory) as session:
        yield session


def get_upload_storage(request: Request) -> UploadStorageProtocol:
    storage = getattr(request.app.state, "upload_storage", None)
    if storage is None:
        settings: ServiceSettings = request.app.state.settings
        storage = LocalUploadStorage.from_settings(settings)
        request.app.state.upload_storage = storage
    return storage


def get_uploads_service(
    session: AsyncSession = Depends(get_session),
    storage: UploadStorageProtocol = Depends(get_upload_storage),
) -> UploadsService:
    return UploadsService(UploadRepository(session), storage)
