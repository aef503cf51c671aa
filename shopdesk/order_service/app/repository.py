"""Data access helpers for order service."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order, OrderItem, OrderStatus, OrderStatusHistory


class OrderRepository:
    """Persistence helpers for orders and related entities."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_order(self, *, items: list[dict[str, Any]], **values: Any) -> Order:
        order = Order(**values)
        for entry in items:
            order.items.append(OrderItem(**entry))
        self.session.add(order)
        await self.session.flush()
        await self.session.refresh(
            order,
            attribute_names=["items", "status_history", "customer", "created_at", "updated_at"],
        )
        return order

    async def order_number_exists(self, order_number: str) -> bool:
        result = await self.session.execute(select(Order.id).where(Order.order_number == order_number))
        return result.first() is not None

    async def get_order(self, order_id: int) -> Order | None:
        result = await self.session.execute(select(Order).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def get_by_number(self, order_number: str) -> Order | None:
        result = await self.session.execute(select(Order).where(Order.order_number == order_number))
        return result.scalar_one_or_none()

    async def list_orders(
        self,
        *,
        customer_id: int | None,
        status: OrderStatus | None,
        search: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Order], int]:
        base: Select[tuple[Order]] = select(Order)
        count: Select[tuple[int]] = select(func.count(Order.id))

        filters = []
        if customer_id is not None:
            filters.append(Order.customer_id == customer_id)
        if status is not None:
            filters.append(Order.status == status)
        if search:
            pattern = f"%{search}%"
            filters.append(
                or_(
                    Order.order_number.ilike(pattern),
                    Order.customer_email.ilike(pattern),
                    Order.customer_name.ilike(pattern),
                )
            )

        if filters:
            base = base.where(and_(*filters))
            count = count.where(and_(*filters))

        total_result = await self.session.execute(count)
        total = total_result.scalar_one()

        result = await self.session.execute(
            base.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit)
        )
        orders = list(result.scalars().unique())
        return orders, total

    async def add_history(
        self,
        order: Order,
        *,
        from_status: OrderStatus | None,
        to_status: OrderStatus,
        notes: str | None,
        changed_by: str | None = None,
    ) -> OrderStatusHistory:
        entry = OrderStatusHistory(
            order_id=order.id,
            from_status=from_status,
            to_status=to_status,
            notes=notes,
            changed_by=changed_by,
        )
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(order, attribute_names=["status_history", "updated_at"])
        return entry

    async def list_history(self, order_id: int) -> list[OrderStatusHistory]:
        result = await self.session.execute(
            select(OrderStatusHistory)
            .where(OrderStatusHistory.order_id == order_id)
            .order_by(OrderStatusHistory.created_at, OrderStatusHistory.id)
        )
        return list(result.scalars())

    async def save(self, order: Order) -> Order:
        await self.session.flush()
        await self.session.refresh(order, attribute_names=["updated_at"])
        return order
