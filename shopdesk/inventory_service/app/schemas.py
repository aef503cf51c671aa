"""Pydantic schemas for inventory service."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveInt

from .models import AdjustmentReason


class InventoryCreate(BaseModel):
    product_variant_id: PositiveInt = Field(alias="productVariantId")
    quantity: NonNegativeInt = 0
    low_stock_threshold: NonNegativeInt = Field(default=10, alias="lowStockThreshold")
    track_inventory: bool = Field(default=True, alias="trackInventory")
    allow_backorder: bool = Field(default=False, alias="allowBackorder")

    model_config = ConfigDict(populate_by_name=True)


class InventoryAdjust(BaseModel):
    product_variant_id: PositiveInt = Field(alias="productVariantId")
    quantity_change: int = Field(alias="quantityChange")
    reason: AdjustmentReason
    notes: str | None = Field(default=None, max_length=1000)

    model_config = ConfigDict(populate_by_name=True)


class StockReservation(BaseModel):
    product_variant_id: PositiveInt = Field(alias="productVariantId")
    quantity: PositiveInt

    model_config = ConfigDict(populate_by_name=True)


class InventoryResponse(BaseModel):
    id: PositiveInt
    product_variant_id: PositiveInt = Field(alias="productVariantId")
    sku: str
    variant_name: str = Field(alias="variantName")
    product_name: str = Field(alias="productName")
    quantity: int
    reserved: int
    available: int
    low_stock_threshold: int = Field(alias="lowStockThreshold")
    track_inventory: bool = Field(alias="trackInventory")
    allow_backorder: bool = Field(alias="allowBackorder")
    is_low_stock: bool = Field(alias="isLowStock")
    last_restocked_at: datetime | None = Field(alias="lastRestockedAt")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class InventoryListResponse(BaseModel):
    items: list[InventoryResponse]
    total: int


class AvailabilityResponse(BaseModel):
    available: bool
    current_stock: int = Field(alias="currentStock")

    model_config = ConfigDict(populate_by_name=True)


class AdjustmentResponse(BaseModel):
    id: PositiveInt
    quantity_change: int = Field(alias="quantityChange")
    reason: AdjustmentReason
    notes: str | None
    user_id: str | None = Field(alias="userId")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)
