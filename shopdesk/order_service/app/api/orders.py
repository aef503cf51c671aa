"""HTTP routes for order management."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from shopdesk.common import from_cents
from shopdesk.common.auth import RequestUser, require_permissions

from ..dependencies import get_order_service
from ..models import Order, OrderStatus
from ..schemas import (
    OrderListResponse,
    OrderResponse,
    OrderStatusHistoryResponse,
    OrderUpdatePaymentStatus,
    OrderUpdateStatus,
)
from ..services import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])

_read = require_permissions("orders:read")
_write = require_permissions("orders:write")


def serialize_order(order: Order) -> OrderResponse:
    return OrderResponse.model_validate(
        {
            "id": order.id,
            "orderNumber": order.order_number,
            "customerId": order.customer_id,
            "status": order.status,
            "paymentStatus": order.payment_status,
            "fulfillmentStatus": order.fulfillment_status,
            "subtotal": from_cents(order.subtotal_cents),
            "tax": from_cents(order.tax_cents),
            "shipping": from_cents(order.shipping_cents),
            "discount": from_cents(order.discount_cents),
            "total": from_cents(order.total_cents),
            "shippingAddress": order.shipping_address,
            "billingAddress": order.billing_address,
            "shippingMethodId": order.shipping_method_id,
            "paymentMethodId": order.payment_method_id,
            "customerEmail": order.customer_email,
            "customerName": order.customer_name,
            "customerPhone": order.customer_phone,
            "customerNotes": order.customer_notes,
            "items": [
                {
                    "id": item.id,
                    "productId": item.product_id,
                    "productVariantId": item.product_variant_id,
                    "productName": item.product_name,
                    "variantName": item.variant_name,
                    "sku": item.sku,
                    "quantity": item.quantity,
                    "unitPrice": from_cents(item.unit_price_cents),
                    "totalPrice": from_cents(item.total_price_cents),
                }
                for item in order.items
            ],
            "createdAt": order.created_at,
            "updatedAt": order.updated_at,
        }
    )


@router.get("", response_model=OrderListResponse, dependencies=[Depends(_read)])
async def list_orders(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    customer_id: int | None = Query(default=None, alias="customerId"),
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=255),
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    orders, total = await service.repository.list_orders(
        customer_id=customer_id,
        status=status_filter,
        search=search.strip() if search else None,
        limit=limit,
        offset=offset,
    )
    return OrderListResponse(items=[serialize_order(order) for order in orders], total=total)


@router.get("/{order_id}", response_model=OrderResponse, dependencies=[Depends(_read)])
async def get_order(order_id: int, service: OrderService = Depends(get_order_service)) -> OrderResponse:
    order = await service.get_order(order_id)
    return serialize_order(order)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    payload: OrderUpdateStatus,
    user: RequestUser = Depends(_write),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = await service.get_order(order_id)
    updated = await service.update_status(order, status=payload.status, notes=payload.notes, changed_by=user.id)
    return serialize_order(updated)


@router.patch("/{order_id}/payment-status", response_model=OrderResponse, dependencies=[Depends(_write)])
async def update_payment_status(
    order_id: int,
    payload: OrderUpdatePaymentStatus,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    order = await service.get_order(order_id)
    updated = await service.update_payment_status(order, payment_status=payload.payment_status)
    return serialize_order(updated)


@router.get(
    "/{order_id}/history",
    response_model=list[OrderStatusHistoryResponse],
    dependencies=[Depends(_read)],
)
async def get_order_history(
    order_id: int, service: OrderService = Depends(get_order_service)
) -> list[OrderStatusHistoryResponse]:
    history = await service.get_history(order_id)
    return [OrderStatusHistoryResponse.model_validate(entry) for entry in history]
