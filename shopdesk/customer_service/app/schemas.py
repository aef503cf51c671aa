"""Pydantic schemas for customer API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _validate_email(value: str) -> str:
    value = value.strip().lower()
    if "@" not in value or value.count("@") != 1:
        msg = "invalid email format"
        raise ValueError(msg)
    local, domain = value.split("@")
    if not local or not domain or "." not in domain:
        msg = "invalid email format"
        raise ValueError(msg)
    return value


class CustomerCreate(BaseModel):
    email: str
    first_name: str = Field(min_length=1, max_length=128, alias="firstName")
    last_name: str = Field(min_length=1, max_length=128, alias="lastName")
    phone: Optional[str] = Field(default=None, max_length=32)
    company: Optional[str] = Field(default=None, max_length=255)
    shipping_address: Optional[dict[str, Any]] = Field(default=None, alias="shippingAddress")
    billing_address: Optional[dict[str, Any]] = Field(default=None, alias="billingAddress")
    notes: Optional[str] = None
    tags: list[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)


class CustomerUpdate(BaseModel):
    email: Optional[str] = None
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=128, alias="firstName")
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=128, alias="lastName")
    phone: Optional[str] = Field(default=None, max_length=32)
    company: Optional[str] = Field(default=None, max_length=255)
    shipping_address: Optional[dict[str, Any]] = Field(default=None, alias="shippingAddress")
    billing_address: Optional[dict[str, Any]] = Field(default=None, alias="billingAddress")
    notes: Optional[str] = None
    tags: Optional[list[str]] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> Optional[str]:
        return _validate_email(value) if value is not None else None


class CustomerQuery(BaseModel):
    search: Optional[str] = Field(default=None, max_length=255)
    tag: Optional[str] = Field(default=None, max_length=64)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    sort_by: Literal["createdAt", "updatedAt", "email", "firstName", "lastName", "company"] = Field(
        default="createdAt", alias="sortBy"
    )
    sort_order: Literal["asc", "desc"] = Field(default="desc", alias="sortOrder")

    model_config = ConfigDict(populate_by_name=True)


class CustomerResponse(BaseModel):
    id: int
    email: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    phone: Optional[str] = None
    company: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")
    shipping_address: Optional[dict[str, Any]] = Field(default=None, alias="shippingAddress")
    billing_address: Optional[dict[str, Any]] = Field(default=None, alias="billingAddress")
    notes: Optional[str] = None
    tags: list[str]
    order_count: int = Field(alias="orderCount")
    total_spent: Decimal = Field(alias="totalSpent")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class CustomerListResponse(BaseModel):
    customers: list[CustomerResponse]
    total: int
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")

    model_config = ConfigDict(populate_by_name=True)


class PortalTokenResponse(BaseModel):
    customer_id: int = Field(alias="customerId")
    portal_token: str = Field(alias="portalToken")
    portal_expires_at: datetime = Field(alias="portalExpiresAt")

    model_config = ConfigDict(populate_by_name=True)


class CustomerStatisticsResponse(BaseModel):
    total_orders: int = Field(alias="totalOrders")
    total_spent: Decimal = Field(alias="totalSpent")
    average_order_value: Decimal = Field(alias="averageOrderValue")
    first_order_date: Optional[datetime] = Field(default=None, alias="firstOrderDate")
    last_order_date: Optional[datetime] = Field(default=None, alias="lastOrderDate")

    model_config = ConfigDict(populate_by_name=True)
