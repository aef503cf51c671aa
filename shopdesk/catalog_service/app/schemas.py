"""Pydantic schemas for the catalog service."""

from __future__ import annotations

import re
from decimal import Decimal
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

from .models import ProductStatus

_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def _clean_slug(value: str) -> str:
    cleaned = value.strip().lower()
    if not _SLUG_PATTERN.match(cleaned):
        msg = "slug must contain lowercase letters, digits and hyphens only"
        raise ValueError(msg)
    return cleaned


class ProductBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    short_description: str | None = Field(default=None, max_length=512, alias="shortDescription")
    base_price: Decimal = Field(ge=Decimal("0"), max_digits=12, decimal_places=2, alias="basePrice")
    compare_at_price: Decimal | None = Field(
        default=None, ge=Decimal("0"), max_digits=12, decimal_places=2, alias="compareAtPrice"
    )
    status: ProductStatus = ProductStatus.DRAFT
    is_visible: bool = Field(default=True, alias="isVisible")
    is_featured: bool = Field(default=False, alias="isFeatured")
    featured_image: str | None = Field(default=None, alias="featuredImage")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            msg = "name must be non-empty"
            raise ValueError(msg)
        return cleaned


class ProductCreate(ProductBase):
    slug: str = Field(min_length=1, max_length=255)
    category_ids: list[PositiveInt] = Field(default_factory=list, alias="categoryIds")
    tag_ids: list[PositiveInt] = Field(default_factory=list, alias="tagIds")

    @field_validator("slug")
    @classmethod
    def _validate_slug(cls, value: str) -> str:
        return _clean_slug(value)


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    short_description: str | None = Field(default=None, max_length=512, alias="shortDescription")
    base_price: Decimal | None = Field(
        default=None, ge=Decimal("0"), max_digits=12, decimal_places=2, alias="basePrice"
    )
    compare_at_price: Decimal | None = Field(
        default=None, ge=Decimal("0"), max_digits=12, decimal_places=2, alias="compareAtPrice"
    )
    status: ProductStatus | None = None
    is_visible: bool | None = Field(default=None, alias="isVisible")
    is_featured: bool | None = Field(default=None, alias="isFeatured")
    featured_image: str | None = Field(default=None, alias="featuredImage")
    category_ids: list[PositiveInt] | None = Field(default=None, alias="categoryIds")
    tag_ids: list[PositiveInt] | None = Field(default=None, alias="tagIds")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("slug")
    @classmethod
    def _validate_slug(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _clean_slug(value)


class CategorySummary(BaseModel):
    id: PositiveInt
    name: str
    slug: str


class TagSummary(BaseModel):
    id: PositiveInt
    name: str
    slug: str


class VariantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    sku: str = Field(min_length=1, max_length=64)
    price: Decimal | None = Field(default=None, ge=Decimal("0"), max_digits=12, decimal_places=2)
    image: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = Field(default=True, alias="isActive")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("sku", "name")
    @classmethod
    def _strip(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            msg = "value must be non-empty"
            raise ValueError(msg)
        return cleaned


class VariantResponse(BaseModel):
    id: PositiveInt
    product_id: PositiveInt = Field(alias="productId")
    name: str
    sku: str
    price: Decimal | None
    image: str | None
    attributes: dict[str, Any]
    is_active: bool = Field(alias="isActive")

    model_config = ConfigDict(populate_by_name=True)


class ProductResponse(ProductBase):
    id: PositiveInt
    slug: str
    published_at: datetime | None = Field(default=None, alias="publishedAt")
    categories: list[CategorySummary]
    tags: list[TagSummary]
    variants: list[VariantResponse]
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255)
    description: str | None = None
    image: str | None = None
    parent_id: PositiveInt | None = Field(default=None, alias="parentId")
    is_visible: bool = Field(default=True, alias="isVisible")
    display_order: int = Field(default=0, ge=0, alias="displayOrder")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("slug")
    @classmethod
    def _validate_slug(cls, value: str) -> str:
        return _clean_slug(value)


class CategoryResponse(BaseModel):
    id: PositiveInt
    name: str
    slug: str
    description: str | None
    image: str | None
    parent_id: int | None = Field(alias="parentId")
    is_visible: bool = Field(alias="isVisible")
    display_order: int = Field(alias="displayOrder")

    model_config = ConfigDict(populate_by_name=True)


class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    slug: str = Field(min_length=1, max_length=128)

    @field_validator("slug")
    @classmethod
    def _validate_slug(cls, value: str) -> str:
        return _clean_slug(value)
