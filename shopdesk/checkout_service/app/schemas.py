"""Pydantic schemas for the checkout service."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from .models import PaymentMethodType


class AddressPayload(BaseModel):
    """Postal address; completeness is checked by checkout validation, not here."""

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    company: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, alias="postalCode")
    country: Optional[str] = None
    phone: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def as_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CheckoutRequest(BaseModel):
    session_id: Optional[str] = Field(default=None, max_length=128, alias="sessionId")
    shipping_address: AddressPayload = Field(alias="shippingAddress")
    billing_address: Optional[AddressPayload] = Field(default=None, alias="billingAddress")
    same_as_shipping: bool = Field(default=False, alias="sameAsShipping")
    shipping_method_id: PositiveInt = Field(alias="shippingMethodId")
    payment_method_id: PositiveInt = Field(alias="paymentMethodId")
    customer_email: Optional[str] = Field(default=None, max_length=255, alias="customerEmail")
    customer_notes: Optional[str] = Field(default=None, max_length=2000, alias="customerNotes")

    model_config = ConfigDict(populate_by_name=True)


class ShippingRequest(BaseModel):
    cart_id: Optional[PositiveInt] = Field(default=None, alias="cartId")
    shipping_method_id: PositiveInt = Field(alias="shippingMethodId")

    model_config = ConfigDict(populate_by_name=True)


class TaxRequest(BaseModel):
    cart_id: PositiveInt = Field(alias="cartId")
    shipping_address: Optional[AddressPayload] = Field(default=None, alias="shippingAddress")

    model_config = ConfigDict(populate_by_name=True)


class TotalsRequest(BaseModel):
    cart_id: PositiveInt = Field(alias="cartId")
    shipping_method_id: PositiveInt = Field(alias="shippingMethodId")
    shipping_address: Optional[AddressPayload] = Field(default=None, alias="shippingAddress")
    payment_method_id: Optional[PositiveInt] = Field(default=None, alias="paymentMethodId")

    model_config = ConfigDict(populate_by_name=True)


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[str]


class ShippingResponse(BaseModel):
    shipping: Decimal


class TaxResponse(BaseModel):
    tax: Decimal


class TotalsResponse(BaseModel):
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    cod_fee: Optional[Decimal] = Field(default=None, alias="codFee")
    total: Decimal

    model_config = ConfigDict(populate_by_name=True)


class PaymentMethodResponse(BaseModel):
    id: PositiveInt
    name: str
    type: PaymentMethodType
    description: Optional[str]
    available: bool
    fee: Decimal
    min_order_amount: Decimal = Field(alias="minOrderAmount")
    max_order_amount: Optional[Decimal] = Field(alias="maxOrderAmount")

    model_config = ConfigDict(populate_by_name=True)


class ShippingMethodResponse(BaseModel):
    id: PositiveInt
    name: str
    description: Optional[str]
    price: Decimal
    available: bool
    estimated_days: Optional[int] = Field(default=None, alias="estimatedDays")

    model_config = ConfigDict(populate_by_name=True)


class ShippingMethodCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(ge=Decimal("0"), max_digits=12, decimal_places=2)
    is_active: bool = Field(default=True, alias="isActive")

    model_config = ConfigDict(populate_by_name=True)


class PaymentMethodCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: PaymentMethodType
    description: Optional[str] = None
    is_active: bool = Field(default=True, alias="isActive")
    display_order: int = Field(default=0, ge=0, alias="displayOrder")
    configuration: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class EcommerceSettingsPayload(BaseModel):
    store_name: Optional[str] = Field(default=None, max_length=255, alias="storeName")
    currency: str = Field(default="USD", min_length=3, max_length=3)
    currency_symbol: str = Field(default="$", min_length=1, max_length=8, alias="currencySymbol")
    tax_rate: Decimal = Field(default=Decimal("0"), ge=Decimal("0"), le=Decimal("100"), alias="taxRate")
    order_number_prefix: str = Field(default="ORD", min_length=1, max_length=16, alias="orderNumberPrefix")
    cod_enabled: bool = Field(default=False, alias="codEnabled")
    cod_fee: Decimal = Field(default=Decimal("0"), ge=Decimal("0"), alias="codFee")
    cod_min_order_amount: Optional[Decimal] = Field(default=None, ge=Decimal("0"), alias="codMinOrderAmount")
    cod_max_order_amount: Optional[Decimal] = Field(default=None, ge=Decimal("0"), alias="codMaxOrderAmount")
    cod_available_countries: list[str] = Field(default_factory=list, alias="codAvailableCountries")

    model_config = ConfigDict(populate_by_name=True)


class EcommerceSettingsResponse(EcommerceSettingsPayload):
    id: PositiveInt
    scope: str
