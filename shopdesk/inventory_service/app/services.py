"""Inventory domain services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from shopdesk.catalog_service.app.models import ProductVariant
from shopdesk.common import ConflictError, InvalidInputError, NotFoundError

from .models import AdjustmentReason, Inventory
from .repository import InventoryRepository
from .schemas import InventoryCreate

_LOGGER = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    available: bool
    current_stock: int


def is_low_stock(inventory: Inventory) -> bool:
    return inventory.track_inventory and inventory.available <= inventory.low_stock_threshold


class InventoryService:
    """Stock level orchestration for product variants."""

    def __init__(self, repository: InventoryRepository) -> None:
        self.repository = repository

    async def create_inventory(self, payload: InventoryCreate) -> Inventory:
        variant = await self.repository.session.get(ProductVariant, payload.product_variant_id)
        if variant is None:
            raise NotFoundError(f"Product variant {payload.product_variant_id} not found")
        if await self.repository.find_by_variant(payload.product_variant_id) is not None:
            raise ConflictError("Inventory already exists for this variant")
        return await self.repository.create_inventory(
            product_variant_id=payload.product_variant_id,
            quantity=payload.quantity,
            low_stock_threshold=payload.low_stock_threshold,
            track_inventory=payload.track_inventory,
            allow_backorder=payload.allow_backorder,
        )

    async def get_by_variant(self, product_variant_id: int) -> Inventory:
        inventory = await self.repository.find_by_variant(product_variant_id)
        if inventory is None:
            raise NotFoundError(f"Inventory not found for variant {product_variant_id}")
        return inventory

    async def adjust_quantity(
        self,
        *,
        product_variant_id: int,
        quantity_change: int,
        reason: AdjustmentReason,
        notes: str | None = None,
        user_id: str | None = None,
    ) -> Inventory:
        """Apply a signed stock delta, creating the inventory row on first use."""

        inventory = await self.repository.find_by_variant(product_variant_id)
        if inventory is None:
            variant = await self.repository.session.get(ProductVariant, product_variant_id)
            if variant is None:
                raise NotFoundError(f"Product variant {product_variant_id} not found")
            inventory = await self.repository.create_inventory(
                product_variant_id=product_variant_id,
                quantity=0,
                low_stock_threshold=10,
                track_inventory=True,
                allow_backorder=False,
            )

        new_quantity = inventory.quantity + quantity_change
        if new_quantity < 0:
            raise InvalidInputError("Adjustment would result in negative inventory")
        if new_quantity - inventory.reserved < 0:
            raise InvalidInputError(
                "Adjustment would result in negative available inventory (reserved stock exceeds total)"
            )

        if quantity_change > 0:
            inventory.last_restocked_at = datetime.now(timezone.utc)
        updated = await self.repository.update_levels(inventory, quantity=new_quantity, reserved=inventory.reserved)
        await self.repository.add_adjustment(
            updated,
            quantity_change=quantity_change,
            reason=reason,
            notes=notes,
            user_id=user_id,
        )
        self._warn_if_low(updated)
        return updated

    async def reserve_stock(self, *, product_variant_id: int, quantity: int) -> Inventory:
        if quantity <= 0:
            raise InvalidInputError("quantity must be positive")
        inventory = await self.get_by_variant(product_variant_id)
        if not inventory.track_inventory:
            return inventory

        if inventory.available - quantity < 0 and not inventory.allow_backorder:
            raise ConflictError(
                f"Insufficient inventory. Available: {inventory.available}, Requested: {quantity}"
            )
        updated = await self.repository.update_levels(
            inventory,
            quantity=inventory.quantity,
            reserved=inventory.reserved + quantity,
        )
        _LOGGER.debug("Reserved %s units of variant %s", quantity, product_variant_id)
        self._warn_if_low(updated)
        return updated

    async def release_stock(self, *, product_variant_id: int, quantity: int) -> Inventory:
        if quantity <= 0:
            raise InvalidInputError("quantity must be positive")
        inventory = await self.get_by_variant(product_variant_id)
        if inventory.reserved < quantity:
            raise InvalidInputError(
                f"Cannot release {quantity} units. Only {inventory.reserved} units are reserved."
            )
        return await self.repository.update_levels(
            inventory,
            quantity=inventory.quantity,
            reserved=inventory.reserved - quantity,
        )

    async def check_availability(self, *, product_variant_id: int, quantity: int) -> AvailabilityResult:
        inventory = await self.repository.find_by_variant(product_variant_id)
        if inventory is None:
            return AvailabilityResult(available=False, current_stock=0)
        if not inventory.track_inventory:
            return AvailabilityResult(available=True, current_stock=inventory.quantity)
        return AvailabilityResult(
            available=inventory.available >= quantity or inventory.allow_backorder,
            current_stock=inventory.available,
        )

    def _warn_if_low(self, inventory: Inventory) -> None:
        if inventory.available > 0 and is_low_stock(inventory):
            _LOGGER.warning(
                "Low stock for variant %s: %s units available (threshold %s)",
                inventory.product_variant_id,
                inventory.available,
                inventory.low_stock_threshold,
            )
