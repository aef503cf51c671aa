"""File upload and media library routes."""

from __future__ import annotations

from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from shopdesk.common.auth import RequestUser, get_current_user, require_permissions

from ..dependencies import get_uploads_service
from ..models import Upload, Visibility
from ..schemas import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    BulkVisibilityRequest,
    BulkVisibilityResponse,
    RemoveResponse,
    StoredFileResponse,
    UploadListResponse,
    UploadQuery,
    UploadResponse,
    UploadUpdate,
    UsageRequest,
)
from ..services import UploadsService
from ..storage import StoredFile

router = APIRouter(prefix="/uploads", tags=["uploads"])

_write_files = require_permissions("files:write")
_delete_files = require_permissions("files:delete")


def serialize_upload(upload: Upload) -> UploadResponse:
    return UploadResponse.model_validate(
        {
            "id": upload.id,
            "filename": upload.filename,
            "originalName": upload.original_name,
            "mimeType": upload.mime_type,
            "size": upload.size,
            "url": upload.url,
            "type": upload.type,
            "visibility": upload.visibility,
            "allowedRoles": upload.allowed_role_ids,
            "uploadedById": upload.uploaded_by_id,
            "title": upload.title,
            "description": upload.description,
            "altText": upload.alt_text,
            "tags": upload.tags or [],
            "usageCount": upload.usage_count,
            "usedIn": upload.used_in or {},
            "deletedAt": upload.deleted_at,
            "deletedById": upload.deleted_by_id,
            "createdAt": upload.created_at,
            "updatedAt": upload.updated_at,
        }
    )


def _stored_response(stored: StoredFile, upload: Upload) -> StoredFileResponse:
    return StoredFileResponse.model_validate({"id": upload.id, **stored.as_payload()})


def _split_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


@router.post("", response_model=StoredFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: Optional[UploadFile] = File(default=None),
    type: Optional[str] = Form(default=None),
    visibility: Optional[Visibility] = Form(default=None),
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    alt_text: Optional[str] = Form(default=None, alias="altText"),
    tags: Optional[str] = Form(default=None),
    user: RequestUser = Depends(_write_files),
    service: UploadsService = Depends(get_uploads_service),
) -> StoredFileResponse:
    stored, upload = await service.upload_file(
        file,
        type,
        user,
        visibility=visibility,
        title=title,
        description=description,
        alt_text=alt_text,
        tags=_split_tags(tags),
    )
    return _stored_response(stored, upload)


@router.post("/editor-image", response_model=StoredFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_editor_image(
    file: Optional[UploadFile] = File(default=None),
    user: RequestUser = Depends(_write_files),
    service: UploadsService = Depends(get_uploads_service),
) -> StoredFileResponse:
    stored, upload = await service.upload_editor_image(file, user)
    return _stored_response(stored, upload)


@router.get("/media", response_model=UploadListResponse)
async def list_media(
    query: Annotated[UploadQuery, Query()],
    user: RequestUser = Depends(get_current_user),
    service: UploadsService = Depends(get_uploads_service),
) -> UploadListResponse:
    page = await service.find_all(query, user)
    return UploadListResponse(
        data=[serialize_upload(upload) for upload in page.data],
        total=page.total,
        page=page.page,
        limit=page.limit,
    )


@router.get("/media/deleted", response_model=list[UploadResponse])
async def list_deleted_media(
    user: RequestUser = Depends(get_current_user),
    service: UploadsService = Depends(get_uploads_service),
) -> list[UploadResponse]:
    return [serialize_upload(upload) for upload in await service.find_deleted(user)]


@router.post("/media/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_media(
    payload: BulkDeleteRequest,
    user: RequestUser = Depends(get_current_user),
    service: UploadsService = Depends(get_uploads_service),
) -> BulkDeleteResponse:
    return BulkDeleteResponse(deleted=await service.bulk_delete(payload.ids, user))


@router.post("/media/bulk-visibility", response_model=BulkVisibilityResponse)
async def bulk_update_visibility(
    payload: BulkVisibilityRequest,
    user: RequestUser = Depends(get_current_user),
    service: UploadsService = Depends(get_uploads_service),
) -> BulkVisibilityResponse:
    updated = await service.bulk_update_visibility(payload.ids, payload.visibility, payload.allowed_roles, user)
    return BulkVisibilityResponse(updated=updated)


@router.get("/media/{upload_id}", response_model=UploadResponse)
async def get_media(
    upload_id: int,
    user: RequestUser = Depends(get_current_user),
    service: UploadsService = Depends(get_uploads_service),
) -> UploadResponse:
    return serialize_upload(await service.find_one(upload_id, user))


@router.patch("/media/{upload_id}", response_model=UploadResponse)
async def update_media(
    upload_id: int,
    payload: UploadUpdate,
    user: RequestUser = Depends(get_current_user),
    service: UploadsService = Depends(get_uploads_service),
) -> UploadResponse:
    return serialize_upload(await service.update(upload_id, payload, user))


@router.delete("/media/{upload_id}", response_model=RemoveResponse)
async def remove_media(
    upload_id: int,
    user: RequestUser = Depends(get_current_user),
    service: UploadsService = Depends(get_uploads_service),
) -> RemoveResponse:
    return RemoveResponse(warning=await service.remove(upload_id, user))


@router.post("/media/{upload_id}/restore", response_model=UploadResponse)
async def restore_media(
    upload_id: int,
    user: RequestUser = Depends(get_current_user),
    service: UploadsService = Depends(get_uploads_service),
) -> UploadResponse:
    return serialize_upload(await service.restore(upload_id, user))


@router.post("/media/{upload_id}/usage", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(_write_files)])
async def record_usage(
    upload_id: int,
    payload: UsageRequest,
    service: UploadsService = Depends(get_uploads_service),
) -> Response:
    await service.increment_usage(upload_id, payload.entity, payload.entity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/media/{upload_id}/permanent")
async def permanently_delete_media(
    upload_id: int,
    user: RequestUser = Depends(get_current_user),
    service: UploadsService = Depends(get_uploads_service),
) -> Response:
    await service.permanent_delete(upload_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{kind}/{filename}", dependencies=[Depends(_delete_files)])
async def delete_file(
    kind: Literal["image", "document"],
    filename: str,
    service: UploadsService = Depends(get_uploads_service),
) -> Response:
    await service.delete_file(kind, filename)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
