"""Data access helpers for inventory service."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AdjustmentReason, Inventory, InventoryAdjustment


class InventoryRepository:
    """Persistence utilities for stock levels and their adjustments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_inventory(
        self,
        *,
        product_variant_id: int,
        quantity: int,
        low_stock_threshold: int,
        track_inventory: bool,
        allow_backorder: bool,
    ) -> Inventory:
        inventory = Inventory(
            product_variant_id=product_variant_id,
            quantity=quantity,
            reserved=0,
            available=quantity,
            low_stock_threshold=low_stock_threshold,
            track_inventory=track_inventory,
            allow_backorder=allow_backorder,
        )
        self.session.add(inventory)
        await self.session.flush()
        await self.session.refresh(
            inventory,
            attribute_names=["created_at", "updated_at", "adjustments", "product_variant"],
        )
        return inventory

    async def get_inventory(self, inventory_id: int) -> Inventory | None:
        result = await self.session.execute(select(Inventory).where(Inventory.id == inventory_id))
        return result.scalar_one_or_none()

    async def find_by_variant(self, product_variant_id: int) -> Inventory | None:
        result = await self.session.execute(
            select(Inventory).where(Inventory.product_variant_id == product_variant_id)
        )
        return result.scalar_one_or_none()

    async def find_by_variants(self, product_variant_ids: Iterable[int]) -> dict[int, Inventory]:
        ids = list(product_variant_ids)
        if not ids:
            return {}
        result = await self.session.execute(select(Inventory).where(Inventory.product_variant_id.in_(ids)))
        return {inventory.product_variant_id: inventory for inventory in result.scalars()}

    async def list_inventory(
        self,
        *,
        out_of_stock: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Inventory], int]:
        base: Select[tuple[Inventory]] = select(Inventory).order_by(Inventory.available.asc(), Inventory.id)
        count: Select[tuple[int]] = select(func.count(Inventory.id))
        if out_of_stock:
            base = base.where(Inventory.available <= 0)
            count = count.where(Inventory.available <= 0)

        total = (await self.session.execute(count)).scalar_one()
        result = await self.session.execute(base.offset(offset).limit(limit))
        return list(result.scalars().unique()), total

    async def list_low_stock(self) -> list[Inventory]:
        result = await self.session.execute(
            select(Inventory)
            .where(Inventory.track_inventory.is_(True))
            .where(Inventory.available <= Inventory.low_stock_threshold)
            .order_by(Inventory.available.asc())
        )
        return list(result.scalars().unique())

    async def update_levels(self, inventory: Inventory, *, quantity: int, reserved: int) -> Inventory:
        inventory.quantity = quantity
        inventory.reserved = reserved
        inventory.available = quantity - reserved
        await self.session.flush()
        await self.session.refresh(inventory, attribute_names=["updated_at"])
        return inventory

    async def add_adjustment(
        self,
        inventory: Inventory,
        *,
        quantity_change: int,
        reason: AdjustmentReason,
        notes: str | None,
        user_id: str | None,
    ) -> InventoryAdjustment:
        adjustment = InventoryAdjustment(
            inventory=inventory,
            quantity_change=quantity_change,
            reason=reason,
            notes=notes,
            user_id=user_id,
        )
        self.session.add(adjustment)
        await self.session.flush()
        await self.session.refresh(adjustment)
        return adjustment

    async def list_adjustments(self, inventory: Inventory, *, limit: int) -> list[InventoryAdjustment]:
        result = await self.session.execute(
            select(InventoryAdjustment)
            .where(InventoryAdjustment.inventory_id == inventory.id)
            .order_by(InventoryAdjustment.id.desc())
            .limit(limit)
        )
        return list(result.scalars())
