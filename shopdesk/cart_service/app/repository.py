"""Data access helpers for the cart service."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Cart, CartItem


class CartRepository:
    """Persistence helpers for shopping carts."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_cart(self, *, session_id: str | None, user_id: str | None) -> Cart | None:
        conditions = []
        if session_id:
            conditions.append(Cart.session_id == session_id)
        if user_id:
            conditions.append(Cart.user_id == user_id)
        if not conditions:
            return None
        result = await self.session.execute(
            select(Cart).where(or_(*conditions)).order_by(Cart.id).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_cart(self, cart_id: int) -> Cart | None:
        result = await self.session.execute(select(Cart).where(Cart.id == cart_id))
        return result.scalar_one_or_none()

    async def create_cart(self, *, session_id: str | None, user_id: str | None, expires_at: datetime) -> Cart:
        cart = Cart(session_id=session_id, user_id=user_id, expires_at=expires_at)
        self.session.add(cart)
        await self.session.flush()
        await self.session.refresh(cart, attribute_names=["created_at", "updated_at", "items"])
        return cart

    async def get_item(self, item_id: int) -> CartItem | None:
        result = await self.session.execute(select(CartItem).where(CartItem.id == item_id))
        return result.scalar_one_or_none()

    def find_line(self, cart: Cart, *, product_id: int, product_variant_id: int | None) -> CartItem | None:
        return next(
            (
                item
                for item in cart.items
                if item.product_id == product_id and item.product_variant_id == product_variant_id
            ),
            None,
        )

    async def add_line(
        self,
        cart: Cart,
        *,
        product_id: int,
        product_variant_id: int | None,
        quantity: int,
        price_snapshot_cents: int,
    ) -> Cart:
        existing = self.find_line(cart, product_id=product_id, product_variant_id=product_variant_id)
        if existing:
            existing.quantity += quantity
        else:
            cart.items.append(
                CartItem(
                    product_id=product_id,
                    product_variant_id=product_variant_id,
                    quantity=quantity,
                    price_snapshot_cents=price_snapshot_cents,
                )
            )
        return await self.refresh(cart)

    async def set_quantity(self, item: CartItem, quantity: int) -> None:
        item.quantity = quantity
        await self.session.flush()

    async def remove_item(self, item: CartItem) -> None:
        await self.session.delete(item)
        await self.session.flush()

    async def clear_items(self, cart: Cart) -> Cart:
        for item in list(cart.items):
            await self.session.delete(item)
        return await self.refresh(cart)

    async def delete_cart(self, cart: Cart) -> None:
        await self.session.delete(cart)
        await self.session.flush()

    async def count_expired(self, *, now: datetime) -> int:
        total = await self.session.scalar(select(func.count(Cart.id)).where(Cart.expires_at < now))
        return int(total or 0)

    async def delete_expired(self, *, now: datetime) -> int:
        expired_ids = select(Cart.id).where(Cart.expires_at < now)
        await self.session.execute(
            delete(CartItem)
            .where(CartItem.cart_id.in_(expired_ids))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(Cart).where(Cart.expires_at < now).execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    async def refresh(self, cart: Cart) -> Cart:
        await self.session.flush()
        await self.session.refresh(cart, attribute_names=["items", "updated_at"])
        return cart
