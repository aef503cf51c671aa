"""Customer domain services."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from shopdesk.common import ConflictError, InvalidInputError, NotFoundError, from_cents
from shopdesk.order_service.app.models import Order

from .models import Customer
from .repository import CustomerRepository
from .schemas import CustomerCreate, CustomerQuery, CustomerUpdate

_LOGGER = logging.getLogger(__name__)

PORTAL_TOKEN_BYTES = 32


@dataclass
class CustomerWithStats:
    customer: Customer
    order_count: int
    total_spent: Decimal


@dataclass
class CustomerPage:
    customers: list[CustomerWithStats]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0


@dataclass
class CustomerStatistics:
    total_orders: int
    total_spent: Decimal
    average_order_value: Decimal
    first_order_date: datetime | None
    last_order_date: datetime | None


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CustomerService:
    """Customer records, portal access and purchase statistics."""

    def __init__(self, repository: CustomerRepository, *, portal_token_ttl_days: int = 30) -> None:
        self.repository = repository
        self.portal_token_ttl_days = portal_token_ttl_days

    async def find_all(self, query: CustomerQuery) -> CustomerPage:
        customers, total = await self.repository.list_customers(
            search=query.search.strip() if query.search else None,
            tag=query.tag,
            sort_by=query.sort_by,
            descending=query.sort_order == "desc",
            limit=query.limit,
            offset=(query.page - 1) * query.limit,
        )
        stats = await self.repository.order_stats(customer.id for customer in customers)
        rows = [self._with_stats(customer, stats.get(customer.id)) for customer in customers]
        return CustomerPage(customers=rows, total=total, page=query.page, limit=query.limit)

    async def find_one(self, customer_id: int) -> CustomerWithStats:
        customer = await self._require(customer_id)
        stats = await self.repository.order_stats([customer.id])
        return self._with_stats(customer, stats.get(customer.id))

    async def create(self, payload: CustomerCreate) -> CustomerWithStats:
        if await self.repository.get_by_email(payload.email) is not None:
            raise ConflictError("Customer with this email already exists")
        customer = await self.repository.create_customer(
            email=payload.email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone=payload.phone,
            company=payload.company,
            shipping_address=payload.shipping_address,
            billing_address=payload.billing_address,
            notes=payload.notes,
            tags=payload.tags,
        )
        _LOGGER.info("Created customer %s", customer.id)
        return self._with_stats(customer, None)

    async def update(self, customer_id: int, payload: CustomerUpdate) -> CustomerWithStats:
        customer = await self._require(customer_id)
        if payload.email is not None and payload.email != customer.email:
            if await self.repository.get_by_email(payload.email) is not None:
                raise ConflictError("Email is already taken")

        changes = payload.model_dump(exclude_unset=True, exclude_none=True, exclude={"tags"})
        await self.repository.update_customer(customer, changes, tags=payload.tags)
        stats = await self.repository.order_stats([customer.id])
        return self._with_stats(customer, stats.get(customer.id))

    async def delete(self, customer_id: int) -> None:
        customer = await self._require(customer_id)
        order_count, _ = (await self.repository.order_stats([customer.id])).get(customer.id, (0, 0))
        if order_count > 0:
            raise InvalidInputError("Cannot delete customer with existing orders")
        await self.repository.delete_customer(customer)

    async def generate_portal_token(self, customer_id: int) -> Customer:
        customer = await self._require(customer_id)
        token = secrets.token_hex(PORTAL_TOKEN_BYTES)
        expires_at = datetime.now(timezone.utc) + timedelta(days=self.portal_token_ttl_days)
        return await self.repository.set_portal_token(customer, token=token, expires_at=expires_at)

    async def get_by_portal_token(self, token: str) -> CustomerWithStats:
        customer = await self.repository.get_by_portal_token(token)
        if customer is None:
            raise NotFoundError("Invalid or expired portal token")
        if customer.portal_expires_at is not None and _ensure_utc(customer.portal_expires_at) < datetime.now(
            timezone.utc
        ):
            raise InvalidInputError("Portal token has expired")
        stats = await self.repository.order_stats([customer.id])
        return self._with_stats(customer, stats.get(customer.id))

    async def get_order_history(self, customer_id: int) -> list[Order]:
        await self._require(customer_id)
        return await self.repository.list_orders(customer_id)

    async def get_statistics(self, customer_id: int) -> CustomerStatistics:
        await self._require(customer_id)
        orders = await self.repository.list_orders(customer_id, oldest_first=True)
        total_cents = sum(order.total_cents for order in orders)
        average_cents = Decimal(total_cents) / len(orders) if orders else Decimal(0)
        return CustomerStatistics(
            total_orders=len(orders),
            total_spent=from_cents(total_cents),
            average_order_value=(average_cents / Decimal(100)).quantize(Decimal("0.01")),
            first_order_date=orders[0].created_at if orders else None,
            last_order_date=orders[-1].created_at if orders else None,
        )

    async def _require(self, customer_id: int) -> Customer:
        customer = await self.repository.get_customer(customer_id)
        if customer is None:
            raise NotFoundError(f"Customer with ID {customer_id} not found")
        return customer

    @staticmethod
    def _with_stats(customer: Customer, stats: tuple[int, int] | None) -> CustomerWithStats:
        order_count, spent_cents = stats or (0, 0)
        return CustomerWithStats(customer=customer, order_count=order_count, total_spent=from_cents(spent_cents))
