"""Pydantic schemas for uploads API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import UploadType, Visibility


class StoredFileResponse(BaseModel):
    id: Optional[int] = None
    filename: str
    original_name: str = Field(alias="originalName")
    mimetype: str
    size: int
    url: str
    uploaded_at: datetime = Field(alias="uploadedAt")

    model_config = ConfigDict(populate_by_name=True)


class UploadCreate(BaseModel):
    filename: str = Field(min_length=1, max_length=255)
    original_name: str = Field(min_length=1, max_length=255, alias="originalName")
    mime_type: str = Field(min_length=1, max_length=128, alias="mimeType")
    size: int = Field(ge=0)
    url: str = Field(min_length=1, max_length=512)
    path: str = Field(min_length=1, max_length=1024)
    type: UploadType
    visibility: Optional[Visibility] = None
    allowed_roles: list[str] = Field(default_factory=list, alias="allowedRoles")
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    alt_text: Optional[str] = Field(default=None, max_length=255, alias="altText")
    tags: list[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class UploadUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    alt_text: Optional[str] = Field(default=None, max_length=255, alias="altText")
    tags: Optional[list[str]] = None
    visibility: Optional[Visibility] = None
    allowed_roles: Optional[list[str]] = Field(default=None, alias="allowedRoles")

    model_config = ConfigDict(populate_by_name=True)


class UploadQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    type: Optional[UploadType] = None
    visibility: Optional[Visibility] = None
    uploaded_by: Optional[str] = Field(default=None, alias="uploadedBy")
    start_date: Optional[datetime] = Field(default=None, alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")
    search: Optional[str] = Field(default=None, max_length=255)
    sort_by: Literal["createdAt", "updatedAt", "originalName", "size", "usageCount"] = Field(
        default="createdAt", alias="sortBy"
    )
    sort_order: Literal["asc", "desc"] = Field(default="desc", alias="sortOrder")

    model_config = ConfigDict(populate_by_name=True)


class UploadResponse(BaseModel):
    id: int
    filename: str
    original_name: str = Field(alias="originalName")
    mime_type: str = Field(alias="mimeType")
    size: int
    url: str
    type: UploadType
    visibility: Visibility
    allowed_roles: list[str] = Field(alias="allowedRoles")
    uploaded_by_id: str = Field(alias="uploadedById")
    title: Optional[str] = None
    description: Optional[str] = None
    alt_text: Optional[str] = Field(default=None, alias="altText")
    tags: list[str]
    usage_count: int = Field(alias="usageCount")
    used_in: dict[str, Any] = Field(alias="usedIn")
    deleted_at: Optional[datetime] = Field(default=None, alias="deletedAt")
    deleted_by_id: Optional[str] = Field(default=None, alias="deletedById")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class UploadListResponse(BaseModel):
    data: list[UploadResponse]
    total: int
    page: int
    limit: int


class RemoveResponse(BaseModel):
    success: bool = True
    warning: Optional[str] = None


class BulkDeleteRequest(BaseModel):
    ids: list[int] = Field(min_length=1)


class BulkDeleteResponse(BaseModel):
    deleted: int


class BulkVisibilityRequest(BaseModel):
    ids: list[int] = Field(min_length=1)
    visibility: Visibility
    allowed_roles: list[str] = Field(default_factory=list, alias="allowedRoles")

    model_config = ConfigDict(populate_by_name=True)


class BulkVisibilityResponse(BaseModel):
    updated: int


class UsageRequest(BaseModel):
    entity: str = Field(min_length=1, max_length=64)
    entity_id: str = Field(min_length=1, max_length=64, alias="entityId")

    model_config = ConfigDict(populate_by_name=True)
