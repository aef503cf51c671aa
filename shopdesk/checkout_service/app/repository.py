"""Data access helpers for checkout configuration."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import EcommerceSettings, PaymentMethod, ShippingMethod

GLOBAL_SCOPE = "global"


class CheckoutRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_shipping_method(self, method_id: int) -> ShippingMethod | None:
        return await self.session.get(ShippingMethod, method_id)

    async def get_payment_method(self, method_id: int) -> PaymentMethod | None:
        return await self.session.get(PaymentMethod, method_id)

    async def list_shipping_methods(self, *, active_only: bool = True) -> list[ShippingMethod]:
        query = select(ShippingMethod).order_by(ShippingMethod.price_cents, ShippingMethod.id)
        if active_only:
            query = query.where(ShippingMethod.is_active.is_(True))
        result = await self.session.execute(query)
        return list(result.scalars())

    async def list_payment_methods(self, *, active_only: bool = True) -> list[PaymentMethod]:
        query = select(PaymentMethod).order_by(PaymentMethod.display_order, PaymentMethod.id)
        if active_only:
            query = query.where(PaymentMethod.is_active.is_(True))
        result = await self.session.execute(query)
        return list(result.scalars())

    async def get_settings(self) -> EcommerceSettings | None:
        result = await self.session.execute(
            select(EcommerceSettings).where(EcommerceSettings.scope == GLOBAL_SCOPE)
        )
        return result.scalar_one_or_none()

    async def add(self, entity: ShippingMethod | PaymentMethod | EcommerceSettings):
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity
