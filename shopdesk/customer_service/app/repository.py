"""Persistence layer for customer service."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from shopdesk.order_service.app.models import Order

from .models import Customer, CustomerTag

SORTABLE_FIELDS = {
    "createdAt": Customer.created_at,
    "updatedAt": Customer.updated_at,
    "email": Customer.email,
    "firstName": Customer.first_name,
    "lastName": Customer.last_name,
    "company": Customer.company,
}


class CustomerRepository:
    """Data access helpers for Customer entities."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_customer(self, *, tags: Iterable[str] = (), **values: Any) -> Customer:
        customer = Customer(**values, tags=[CustomerTag(name=name) for name in _unique(tags)])
        self.session.add(customer)
        await self.session.flush()
        await self.session.refresh(customer, attribute_names=["tags", "created_at", "updated_at"])
        return customer

    async def get_customer(self, customer_id: int) -> Customer | None:
        result = await self.session.execute(select(Customer).where(Customer.id == customer_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Customer | None:
        result = await self.session.execute(select(Customer).where(Customer.email == email))
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: str) -> Customer | None:
        result = await self.session.execute(select(Customer).where(Customer.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_by_portal_token(self, token: str) -> Customer | None:
        result = await self.session.execute(select(Customer).where(Customer.portal_token == token))
        return result.scalar_one_or_none()

    async def list_customers(
        self,
        *,
        search: str | None,
        tag: str | None,
        sort_by: str,
        descending: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Customer], int]:
        base: Select[tuple[Customer]] = select(Customer)
        count: Select[tuple[int]] = select(func.count(Customer.id))

        if search:
            pattern = f"%{search}%"
            condition = or_(
                Customer.email.ilike(pattern),
                Customer.first_name.ilike(pattern),
                Customer.last_name.ilike(pattern),
                Customer.company.ilike(pattern),
            )
            base = base.where(condition)
            count = count.where(condition)
        if tag:
            condition = Customer.tags.any(CustomerTag.name == tag)
            base = base.where(condition)
            count = count.where(condition)

        total = (await self.session.execute(count)).scalar_one()

        column = SORTABLE_FIELDS.get(sort_by, Customer.created_at)
        ordering = column.desc() if descending else column.asc()
        result = await self.session.execute(
            base.order_by(ordering, Customer.id).offset(offset).limit(limit)
        )
        return list(result.scalars().unique()), total

    async def update_customer(
        self, customer: Customer, changes: dict[str, Any], *, tags: Iterable[str] | None = None
    ) -> Customer:
        for field_name, value in changes.items():
            setattr(customer, field_name, value)
        if tags is not None:
            wanted = _unique(tags)
            customer.tags = [tag for tag in customer.tags if tag.name in wanted]
            present = {tag.name for tag in customer.tags}
            for name in wanted:
                if name not in present:
                    customer.tags.append(CustomerTag(name=name))

        await self.session.flush()
        await self.session.refresh(customer, attribute_names=["tags", "updated_at"])
        return customer

    async def set_portal_token(self, customer: Customer, *, token: str, expires_at: datetime) -> Customer:
        customer.portal_token = token
        customer.portal_expires_at = expires_at
        await self.session.flush()
        await self.session.refresh(customer, attribute_names=["updated_at"])
        return customer

    async def delete_customer(self, customer: Customer) -> None:
        await self.session.delete(customer)
        await self.session.flush()

    async def order_stats(self, customer_ids: Iterable[int]) -> dict[int, tuple[int, int]]:
        """Return ``{customer_id: (order_count, total_spent_cents)}``."""

        ids = list(customer_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(Order.customer_id, func.count(Order.id), func.coalesce(func.sum(Order.total_cents), 0))
            .where(Order.customer_id.in_(ids))
            .group_by(Order.customer_id)
        )
        return {customer_id: (int(count), int(total)) for customer_id, count, total in result.all()}

    async def list_orders(self, customer_id: int, *, oldest_first: bool = False) -> list[Order]:
        ordering = Order.created_at.asc() if oldest_first else Order.created_at.desc()
        result = await self.session.execute(
            select(Order).where(Order.customer_id == customer_id).order_by(ordering, Order.id)
        )
        return list(result.scalars().unique())


def _unique(names: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for name in names:
        cleaned = name.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen
