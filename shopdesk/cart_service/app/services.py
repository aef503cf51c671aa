"""Cart domain services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from shopdesk.catalog_service.app.models import Product, ProductVariant
from shopdesk.common import InvalidInputError, NotFoundError, from_cents
from shopdesk.inventory_service.app.repository import InventoryRepository

from .models import Cart
from .repository import CartRepository

_LOGGER = logging.getLogger(__name__)

DEFAULT_CART_EXPIRY_DAYS = 30


@dataclass
class CartTotals:
    item_count: int
    subtotal: Decimal


@dataclass
class InventoryValidation:
    valid: bool
    errors: list[dict[str, Any]] = field(default_factory=list)


def compute_totals(cart: Cart) -> CartTotals:
    """Sum quantities and price snapshots over every line of ``cart``."""

    subtotal_cents = sum(item.price_snapshot_cents * item.quantity for item in cart.items)
    return CartTotals(
        item_count=sum(item.quantity for item in cart.items),
        subtotal=from_cents(subtotal_cents),
    )


class CartService:
    """Shopping cart operations keyed by guest session or signed-in user."""

    def __init__(self, repository: CartRepository, *, expiry_days: int = DEFAULT_CART_EXPIRY_DAYS) -> None:
        self.repository = repository
        self.expiry_days = expiry_days

    @property
    def session(self) -> AsyncSession:
        return self.repository.session

    async def get_or_create_cart(self, session_id: str | None = None, user_id: str | None = None) -> Cart:
        if not session_id and not user_id:
            raise InvalidInputError("Either sessionId or userId is required")

        cart = await self.repository.find_cart(session_id=session_id, user_id=user_id)
        if cart is None:
            cart = await self.repository.create_cart(
                session_id=session_id,
                user_id=user_id,
                expires_at=datetime.now(timezone.utc) + timedelta(days=self.expiry_days),
            )
            _LOGGER.debug("Created cart %s (session=%s user=%s)", cart.id, session_id, user_id)
        return cart

    async def add_to_cart(
        self,
        *,
        product_id: int,
        quantity: int,
        product_variant_id: int | None = None,
        session_id: str | None = None,
        user_id: str | None = None,
    ) -> Cart:
        product = await self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found")

        price_snapshot_cents = product.base_price_cents
        if product_variant_id is not None:
            variant = await self.session.get(ProductVariant, product_variant_id)
            if variant is None:
                raise NotFoundError("Product variant not found")
            if variant.price_cents is not None:
                price_snapshot_cents = variant.price_cents

        cart = await self.get_or_create_cart(session_id, user_id)
        return await self.repository.add_line(
            cart,
            product_id=product_id,
            product_variant_id=product_variant_id,
            quantity=quantity,
            price_snapshot_cents=price_snapshot_cents,
        )

    async def update_cart_item(self, item_id: int, *, quantity: int) -> Cart:
        item = await self.repository.get_item(item_id)
        if item is None:
            raise NotFoundError("Cart item not found")
        await self.repository.set_quantity(item, quantity)
        return await self._owning_cart(item.cart_id)

    async def remove_cart_item(self, item_id: int) -> Cart:
        item = await self.repository.get_item(item_id)
        if item is None:
            raise NotFoundError("Cart item not found")
        cart_id = item.cart_id
        await self.repository.remove_item(item)
        return await self._owning_cart(cart_id)

    async def clear_cart(self, cart_id: int) -> Cart:
        cart = await self.repository.get_cart(cart_id)
        if cart is None:
            raise NotFoundError("Cart not found")
        return await self.repository.clear_items(cart)

    async def merge_cart(self, session_id: str, user_id: str) -> Cart:
        """Fold the guest cart for ``session_id`` into the user's cart."""

        guest = await self.repository.find_cart(session_id=session_id, user_id=None)
        if guest is not None and guest.user_id == user_id:
            return guest
        if guest is None or not guest.items:
            return await self.get_or_create_cart(None, user_id)

        user_cart = await self.get_or_create_cart(None, user_id)
        for item in list(guest.items):
            await self.repository.add_line(
                user_cart,
                product_id=item.product_id,
                product_variant_id=item.product_variant_id,
                quantity=item.quantity,
                price_snapshot_cents=item.price_snapshot_cents,
            )
        merged_lines = len(guest.items)
        await self.repository.delete_cart(guest)
        _LOGGER.info("Merged %s guest cart lines into cart %s for user %s", merged_lines, user_cart.id, user_id)
        return await self.repository.refresh(user_cart)

    async def validate_inventory(
        self, session_id: str | None = None, user_id: str | None = None
    ) -> InventoryValidation:
        """Report every variant line whose stock cannot cover the requested quantity."""

        cart = await self.get_or_create_cart(session_id, user_id)
        inventory_repository = InventoryRepository(self.session)
        stock = await inventory_repository.find_by_variants(
            item.product_variant_id for item in cart.items if item.product_variant_id is not None
        )

        errors: list[dict[str, Any]] = []
        for item in cart.items:
            if item.product_variant_id is None:
                continue
            inventory = stock.get(item.product_variant_id)
            if inventory is None:
                errors.append(
                    {
                        "itemId": item.id,
                        "productId": item.product_id,
                        "productName": item.product.name,
                        "error": "Inventory not found",
                    }
                )
                continue
            if inventory.available < item.quantity:
                errors.append(
                    {
                        "itemId": item.id,
                        "productId": item.product_id,
                        "productName": item.product.name,
                        "requested": item.quantity,
                        "available": inventory.available,
                        "error": "Insufficient inventory",
                    }
                )
        return InventoryValidation(valid=not errors, errors=errors)

    async def cleanup_expired_carts(self) -> int:
        removed = await self.repository.delete_expired(now=datetime.now(timezone.utc))
        if removed:
            _LOGGER.info("Removed %s expired carts", removed)
        return removed

    async def _owning_cart(self, cart_id: int) -> Cart:
        cart = await self.repository.get_cart(cart_id)
        if cart is None:
            raise NotFoundError("Cart not found")
        return await self.repository.refresh(cart)
