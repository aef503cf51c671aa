"""Pydantic schemas for the order service."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from .models import FulfillmentStatus, OrderStatus, PaymentStatus


class OrderUpdateStatus(BaseModel):
    status: OrderStatus
    notes: str | None = Field(default=None, max_length=2000)


class OrderUpdatePaymentStatus(BaseModel):
    payment_status: PaymentStatus = Field(alias="paymentStatus")

    model_config = ConfigDict(populate_by_name=True)


class OrderItemResponse(BaseModel):
    id: PositiveInt
    product_id: int | None = Field(alias="productId")
    product_variant_id: int | None = Field(alias="productVariantId")
    product_name: str = Field(alias="productName")
    variant_name: str | None = Field(alias="variantName")
    sku: str
    quantity: PositiveInt
    unit_price: Decimal = Field(alias="unitPrice")
    total_price: Decimal = Field(alias="totalPrice")

    model_config = ConfigDict(populate_by_name=True)


class OrderResponse(BaseModel):
    id: PositiveInt
    order_number: str = Field(alias="orderNumber")
    customer_id: PositiveInt = Field(alias="customerId")
    status: OrderStatus
    payment_status: PaymentStatus = Field(alias="paymentStatus")
    fulfillment_status: FulfillmentStatus = Field(alias="fulfillmentStatus")
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    discount: Decimal
    total: Decimal
    shipping_address: dict[str, Any] = Field(alias="shippingAddress")
    billing_address: dict[str, Any] = Field(alias="billingAddress")
    shipping_method_id: int | None = Field(alias="shippingMethodId")
    payment_method_id: int | None = Field(alias="paymentMethodId")
    customer_email: str = Field(alias="customerEmail")
    customer_name: str = Field(alias="customerName")
    customer_phone: str | None = Field(alias="customerPhone")
    customer_notes: str | None = Field(alias="customerNotes")
    items: list[OrderItemResponse]
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int


class OrderStatusHistoryResponse(BaseModel):
    id: PositiveInt
    from_status: OrderStatus | None = Field(alias="fromStatus")
    to_status: OrderStatus = Field(alias="toStatus")
    notes: str | None
    changed_by: str | None = Field(alias="changedBy")
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)
