"""Customer administration and portal routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from shopdesk.common.auth import require_permissions
from shopdesk.order_service.app.api.orders import serialize_order
from shopdesk.order_service.app.schemas import OrderResponse

from ..dependencies import get_customer_service
from ..schemas import (
    CustomerCreate,
    CustomerListResponse,
    CustomerQuery,
    CustomerResponse,
    CustomerStatisticsResponse,
    CustomerUpdate,
    PortalTokenResponse,
)
from ..services import CustomerService, CustomerWithStats

router = APIRouter(prefix="/customers", tags=["customers"])

_read = require_permissions("customers:read")
_write = require_permissions("customers:write")


def _serialize_customer(row: CustomerWithStats) -> CustomerResponse:
    customer = row.customer
    return CustomerResponse.model_validate(
        {
            "id": customer.id,
            "email": customer.email,
            "firstName": customer.first_name,
            "lastName": customer.last_name,
            "phone": customer.phone,
            "company": customer.company,
            "userId": customer.user_id,
            "shippingAddress": customer.shipping_address,
            "billingAddress": customer.billing_address,
            "notes": customer.notes,
            "tags": customer.tag_names,
            "orderCount": row.order_count,
            "totalSpent": row.total_spent,
            "createdAt": customer.created_at,
            "updatedAt": customer.updated_at,
        }
    )


@router.get("/portal/{token}", response_model=CustomerResponse)
async def get_by_portal_token(
    token: str, service: CustomerService = Depends(get_customer_service)
) -> CustomerResponse:
    return _serialize_customer(await service.get_by_portal_token(token))


@router.get("", response_model=CustomerListResponse, dependencies=[Depends(_read)])
async def list_customers(
    query: Annotated[CustomerQuery, Query()],
    service: CustomerService = Depends(get_customer_service),
) -> CustomerListResponse:
    page = await service.find_all(query)
    return CustomerListResponse(
        customers=[_serialize_customer(row) for row in page.customers],
        total=page.total,
        page=page.page,
        limit=page.limit,
        totalPages=page.total_pages,
    )


@router.post(
    "",
    response_model=CustomerResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_write)],
)
async def create_customer(
    payload: CustomerCreate, service: CustomerService = Depends(get_customer_service)
) -> CustomerResponse:
    return _serialize_customer(await service.create(payload))


@router.get("/{customer_id}", response_model=CustomerResponse, dependencies=[Depends(_read)])
async def get_customer(
    customer_id: int, service: CustomerService = Depends(get_customer_service)
) -> CustomerResponse:
    return _serialize_customer(await service.find_one(customer_id))


@router.patch("/{customer_id}", response_model=CustomerResponse, dependencies=[Depends(_write)])
async def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    service: CustomerService = Depends(get_customer_service),
) -> CustomerResponse:
    return _serialize_customer(await service.update(customer_id, payload))


@router.delete("/{customer_id}", dependencies=[Depends(_write)])
async def delete_customer(
    customer_id: int, service: CustomerService = Depends(get_customer_service)
) -> Response:
    await service.delete(customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{customer_id}/portal-token", response_model=PortalTokenResponse, dependencies=[Depends(_write)])
async def generate_portal_token(
    customer_id: int, service: CustomerService = Depends(get_customer_service)
) -> PortalTokenResponse:
    customer = await service.generate_portal_token(customer_id)
    return PortalTokenResponse(
        customerId=customer.id,
        portalToken=customer.portal_token,
        portalExpiresAt=customer.portal_expires_at,
    )


@router.get("/{customer_id}/orders", response_model=list[OrderResponse], dependencies=[Depends(_read)])
async def get_order_history(
    customer_id: int, service: CustomerService = Depends(get_customer_service)
) -> list[OrderResponse]:
    orders = await service.get_order_history(customer_id)
    return [serialize_order(order) for order in orders]


@router.get(
    "/{customer_id}/statistics",
    response_model=CustomerStatisticsResponse,
    dependencies=[Depends(_read)],
)
async def get_statistics(
    customer_id: int, service: CustomerService = Depends(get_customer_service)
) -> CustomerStatisticsResponse:
    stats = await service.get_statistics(customer_id)
    return CustomerStatisticsResponse(
        totalOrders=stats.total_orders,
        totalSpent=stats.total_spent,
        averageOrderValue=stats.average_order_value,
        firstOrderDate=stats.first_order_date,
        lastOrderDate=stats.last_order_date,
    )
