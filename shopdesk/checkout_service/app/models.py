"""SQLAlchemy models for checkout configuration."""

from __future__ import annotations

import enum
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Boolean, Enum, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shopdesk.common.models import Base, TimestampMixin


class PaymentMethodType(str, enum.Enum):
    COD = "COD"
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    PAYPAL = "PAYPAL"
    OTHER = "OTHER"


class ShippingMethod(TimestampMixin, Base):
    __tablename__ = "shipping_methods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class PaymentMethod(TimestampMixin, Base):
    __tablename__ = "payment_methods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[PaymentMethodType] = mapped_column(
        Enum(PaymentMethodType, name="payment_method_type"), nullable=False
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    configuration: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)


class EcommerceSettings(TimestampMixin, Base):
    __tablename__ = "ecommerce_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scope: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, default="global")
    store_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    currency_symbol: Mapped[str] = mapped_column(String(8), nullable=False, default="$")
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    order_number_prefix: Mapped[str] = mapped_column(String(16), nullable=False, default="ORD")
    cod_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cod_fee_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cod_min_order_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cod_max_order_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cod_available_countries: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
