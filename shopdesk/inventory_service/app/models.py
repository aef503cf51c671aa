"""SQLAlchemy models for inventory service."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shopdesk.catalog_service.app.models import ProductVariant
from shopdesk.common.models import Base, TimestampMixin


class AdjustmentReason(str, enum.Enum):
    RESTOCK = "RESTOCK"
    SALE = "SALE"
    RETURN = "RETURN"
    DAMAGE = "DAMAGE"
    CORRECTION = "CORRECTION"
    OTHER = "OTHER"


class Inventory(TimestampMixin, Base):
    __tablename__ = "inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_variant_id: Mapped[int] = mapped_column(
        ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reserved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    available: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    track_inventory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    allow_backorder: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_restocked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    product_variant: Mapped[ProductVariant] = relationship(lazy="joined")
    adjustments: Mapped[list[InventoryAdjustment]] = relationship(
        back_populates="inventory",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InventoryAdjustment.id.desc()",
    )


class InventoryAdjustment(Base):
    __tablename__ = "inventory_adjustments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    inventory_id: Mapped[int] = mapped_column(
        ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity_change: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[AdjustmentReason] = mapped_column(Enum(AdjustmentReason, name="adjustment_reason"), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    inventory: Mapped[Inventory] = relationship(back_populates="adjustments")
