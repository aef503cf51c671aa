"""Landing-page content routes."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Response, UploadFile, status

from shopdesk.common.auth import RequestUser, require_permissions
from shopdesk.uploads_service.app.models import Visibility
from shopdesk.uploads_service.app.services import UploadsService

from ..dependencies import get_landing_service, get_section_image_uploads
from ..models import CustomPage
from ..schemas import (
    BrandingApplyResponse,
    BrandingPayload,
    BrandingSyncResponse,
    CustomPageCreate,
    CustomPageResponse,
    LandingContentResponse,
    LandingContentUpdate,
    SectionImageResponse,
)
from ..services import LandingDocument, LandingService

router = APIRouter(prefix="/landing", tags=["landing"])

_read = require_permissions("landing:read")
_write = require_permissions("landing:write")

PUBLIC_CACHE_CONTROL = "public, max-age=300"


def _serialize(document: LandingDocument) -> LandingContentResponse:
    return LandingContentResponse(
        id=document.id,
        sections=document.sections,
        settings=document.settings,
        version=document.version,
        isActive=document.is_active,
        createdAt=document.created_at,
        updatedAt=document.updated_at,
    )


def _serialize_page(page: CustomPage) -> CustomPageResponse:
    return CustomPageResponse(
        id=page.id,
        title=page.title,
        slug=page.slug,
        status=page.status,
        createdAt=page.created_at,
        updatedAt=page.updated_at,
    )


@router.get("", response_model=LandingContentResponse)
async def get_content(
    response: Response, service: LandingService = Depends(get_landing_service)
) -> LandingContentResponse:
    document = await service.get_content()
    response.headers["Cache-Control"] = PUBLIC_CACHE_CONTROL
    return _serialize(document)


@router.get("/admin", response_model=LandingContentResponse, dependencies=[Depends(_read)])
async def get_admin_content(service: LandingService = Depends(get_landing_service)) -> LandingContentResponse:
    return _serialize(await service.get_admin_content())


@router.patch("", response_model=LandingContentResponse, dependencies=[Depends(_write)])
async def update_content(
    payload: LandingContentUpdate, service: LandingService = Depends(get_landing_service)
) -> LandingContentResponse:
    return _serialize(await service.update_content(payload))


@router.post("/reset", response_model=LandingContentResponse, dependencies=[Depends(_write)])
async def reset_content(service: LandingService = Depends(get_landing_service)) -> LandingContentResponse:
    return _serialize(await service.reset_to_defaults())


@router.post("/section-image", response_model=SectionImageResponse, status_code=status.HTTP_201_CREATED)
async def upload_section_image(
    file: Optional[UploadFile] = File(default=None),
    user: RequestUser = Depends(_write),
    uploads: UploadsService = Depends(get_section_image_uploads),
) -> SectionImageResponse:
    stored, upload = await uploads.upload_file(
        file, "image", user, visibility=Visibility.PUBLIC, tags=["landing"]
    )
    return SectionImageResponse(
        id=upload.id,
        url=stored.url,
        filename=stored.filename,
        size=stored.size,
        mimetype=stored.mimetype,
    )


@router.post("/sync-branding", response_model=BrandingSyncResponse, dependencies=[Depends(_write)])
async def sync_branding(
    payload: BrandingPayload, service: LandingService = Depends(get_landing_service)
) -> BrandingSyncResponse:
    await service.sync_branding(payload)
    return BrandingSyncResponse(message="Branding synced successfully")


@router.post("/apply-branding-all", response_model=BrandingApplyResponse, dependencies=[Depends(_write)])
async def apply_branding_to_all(
    payload: BrandingPayload, service: LandingService = Depends(get_landing_service)
) -> BrandingApplyResponse:
    updated = await service.apply_branding_to_all(payload)
    return BrandingApplyResponse(updated=updated, message=f"Branding applied to {updated} landing page(s)")


@router.get("/settings")
async def get_settings(service: LandingService = Depends(get_landing_service)) -> dict[str, Any]:
    return await service.get_settings()


@router.patch("/settings", dependencies=[Depends(_write)])
async def update_settings(
    changes: dict[str, Any] = Body(...), service: LandingService = Depends(get_landing_service)
) -> dict[str, Any]:
    return await service.update_settings(changes)


@router.get("/pages", response_model=list[CustomPageResponse], dependencies=[Depends(_read)])
async def list_pages(service: LandingService = Depends(get_landing_service)) -> list[CustomPageResponse]:
    return [_serialize_page(page) for page in await service.list_pages()]


@router.post(
    "/pages",
    response_model=CustomPageResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_write)],
)
async def create_page(
    payload: CustomPageCreate, service: LandingService = Depends(get_landing_service)
) -> CustomPageResponse:
    return _serialize_page(await service.create_page(payload))
