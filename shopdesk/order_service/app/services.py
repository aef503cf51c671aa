"""Service layer for orchestrating order operations."""

from __future__ import annotations

import logging

from shopdesk.common import InvalidInputError, NotFoundError
from shopdesk.inventory_service.app.repository import InventoryRepository
from shopdesk.inventory_service.app.services import InventoryService

from .models import FulfillmentStatus, Order, OrderStatus, OrderStatusHistory, PaymentStatus
from .repository import OrderRepository

_LOGGER = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})


class OrderService:
    """High-level operations on orders."""

    def __init__(self, repository: OrderRepository) -> None:
        self.repository = repository

    async def get_order(self, order_id: int) -> Order:
        order = await self.repository.get_order(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    async def update_status(
        self,
        order: Order,
        *,
        status: OrderStatus,
        notes: str | None = None,
        changed_by: str | None = None,
    ) -> Order:
        """Move ``order`` to ``status`` and append a history entry.

        Cancelling an order hands its reserved stock back to inventory.
        """

        previous = order.status
        if previous == status:
            raise InvalidInputError(f"Order is already {status.value}")
        if previous in TERMINAL_STATUSES:
            raise InvalidInputError(f"Cannot change status of a {previous.value.lower()} order")

        if status is OrderStatus.CANCELLED:
            await self._release_reservations(order)
        elif status is OrderStatus.DELIVERED:
            order.fulfillment_status = FulfillmentStatus.FULFILLED
        elif status is OrderStatus.REFUNDED:
            order.payment_status = PaymentStatus.REFUNDED

        order.status = status
        await self.repository.save(order)
        await self.repository.add_history(
            order,
            from_status=previous,
            to_status=status,
            notes=notes,
            changed_by=changed_by,
        )
        _LOGGER.info("Order %s moved from %s to %s", order.order_number, previous.value, status.value)
        return order

    async def update_payment_status(self, order: Order, *, payment_status: PaymentStatus) -> Order:
        order.payment_status = payment_status
        return await self.repository.save(order)

    async def get_history(self, order_id: int) -> list[OrderStatusHistory]:
        await self.get_order(order_id)
        return await self.repository.list_history(order_id)

    async def _release_reservations(self, order: Order) -> None:
        inventory = InventoryService(InventoryRepository(self.repository.session))
        for item in order.items:
            if item.product_variant_id is None:
                continue
            try:
                await inventory.release_stock(
                    product_variant_id=item.product_variant_id, quantity=item.quantity
                )
            except (NotFoundError, InvalidInputError) as exc:
                _LOGGER.warning(
                    "Could not release stock for order %s variant %s: %s",
                    order.order_number,
                    item.product_variant_id,
                    exc,
                )
