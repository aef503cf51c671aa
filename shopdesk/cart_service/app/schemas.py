"""Pydantic schemas for the cart service."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt


class AddToCartRequest(BaseModel):
    product_id: PositiveInt = Field(alias="productId")
    product_variant_id: PositiveInt | None = Field(default=None, alias="productVariantId")
    quantity: PositiveInt
    session_id: str | None = Field(default=None, max_length=128, alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)


class UpdateCartItemRequest(BaseModel):
    quantity: PositiveInt


class MergeCartRequest(BaseModel):
    session_id: str = Field(min_length=1, max_length=128, alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)


class CartProductSummary(BaseModel):
    id: PositiveInt
    name: str
    slug: str
    featured_image: str | None = Field(alias="featuredImage")
    base_price: Decimal = Field(alias="basePrice")

    model_config = ConfigDict(populate_by_name=True)


class CartVariantSummary(BaseModel):
    id: PositiveInt
    name: str
    price: Decimal | None
    image: str | None


class CartItemResponse(BaseModel):
    id: PositiveInt
    cart_id: PositiveInt = Field(alias="cartId")
    product_id: PositiveInt = Field(alias="productId")
    product_variant_id: PositiveInt | None = Field(alias="productVariantId")
    quantity: PositiveInt
    price_snapshot: Decimal = Field(alias="priceSnapshot")
    product: CartProductSummary | None
    product_variant: CartVariantSummary | None = Field(alias="productVariant")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class CartResponse(BaseModel):
    id: PositiveInt
    session_id: str | None = Field(alias="sessionId")
    user_id: str | None = Field(alias="userId")
    expires_at: datetime = Field(alias="expiresAt")
    items: list[CartItemResponse]
    subtotal: Decimal
    item_count: int = Field(alias="itemCount")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class CartTotalsResponse(BaseModel):
    subtotal: Decimal
    item_count: int = Field(alias="itemCount")

    model_config = ConfigDict(populate_by_name=True)


class InventoryValidationResponse(BaseModel):
    valid: bool
    errors: list[dict[str, Any]]
