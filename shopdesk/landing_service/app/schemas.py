"""Pydantic schemas for landing API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import PageStatus


class LandingSection(BaseModel):
    id: str = Field(min_length=1, max_length=128)
    type: str = Field(min_length=1, max_length=64)
    enabled: bool = True
    order: int = 0
    data: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow")


class LandingContentUpdate(BaseModel):
    sections: Optional[list[LandingSection]] = None
    settings: Optional[dict[str, Any]] = None


class LandingContentResponse(BaseModel):
    id: int
    sections: list[dict[str, Any]]
    settings: dict[str, Any]
    version: int
    is_active: bool = Field(alias="isActive")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class BrandingPayload(BaseModel):
    brand_name: str = Field(min_length=1, max_length=255, alias="brandName")
    tagline: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = Field(default=None, alias="logoUrl")
    social_links: Optional[dict[str, str]] = Field(default=None, alias="socialLinks")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BrandingSyncResponse(BaseModel):
    message: str


class BrandingApplyResponse(BaseModel):
    updated: int
    message: str


class SectionImageResponse(BaseModel):
    id: int
    url: str
    filename: str
    size: int
    mimetype: str


class CustomPageCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    status: PageStatus = PageStatus.DRAFT


class CustomPageResponse(BaseModel):
    id: str
    title: str
    slug: str
    status: PageStatus
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)
