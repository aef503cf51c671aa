"""Pydantic schemas for the public storefront."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

SortBy = Literal["newest", "oldest", "price_asc", "price_desc", "name_asc", "name_desc"]


class StorefrontQuery(BaseModel):
    search: str | None = Field(default=None, max_length=255)
    category_slug: str | None = Field(default=None, alias="categorySlug")
    tag_slug: str | None = Field(default=None, alias="tagSlug")
    min_price: Decimal | None = Field(default=None, ge=Decimal("0"), alias="minPrice")
    max_price: Decimal | None = Field(default=None, ge=Decimal("0"), alias="maxPrice")
    is_featured: bool | None = Field(default=None, alias="isFeatured")
    sort_by: SortBy = Field(default="newest", alias="sortBy")
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=24, ge=1, le=100)

    model_config = ConfigDict(populate_by_name=True)


class Reference(BaseModel):
    id: PositiveInt
    name: str
    slug: str


class VariantStock(BaseModel):
    quantity: int
    reserved: int
    available: int


class StorefrontVariant(BaseModel):
    id: PositiveInt
    name: str
    sku: str
    attributes: dict[str, Any]
    price: Decimal | None
    is_active: bool = Field(alias="isActive")
    inventory: VariantStock | None = None

    model_config = ConfigDict(populate_by_name=True)


class StorefrontProduct(BaseModel):
    id: PositiveInt
    name: str
    slug: str
    description: str | None
    short_description: str | None = Field(alias="shortDescription")
    base_price: Decimal = Field(alias="basePrice")
    compare_at_price: Decimal | None = Field(alias="compareAtPrice")
    is_featured: bool = Field(alias="isFeatured")
    featured_image: str | None = Field(alias="featuredImage")
    published_at: datetime | None = Field(alias="publishedAt")
    categories: list[Reference]
    tags: list[Reference]
    variants: list[StorefrontVariant] | None = None

    model_config = ConfigDict(populate_by_name=True)


class StorefrontProductList(BaseModel):
    products: list[StorefrontProduct]
    total: int
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")

    model_config = ConfigDict(populate_by_name=True)


class StorefrontCategory(BaseModel):
    id: PositiveInt
    name: str
    slug: str
    description: str | None
    image: str | None
    product_count: int = Field(alias="productCount")
    children: list[StorefrontCategory] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class SearchQuery(StorefrontQuery):
    q: str = Field(min_length=1, max_length=255)
