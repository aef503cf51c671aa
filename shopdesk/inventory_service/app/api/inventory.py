"""Inventory HTTP endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from shopdesk.common.auth import RequestUser, require_permissions

from ..dependencies import get_inventory_service, get_repository
from ..models import Inventory, InventoryAdjustment
from ..repository import InventoryRepository
from ..schemas import (
    AdjustmentResponse,
    AvailabilityResponse,
    InventoryAdjust,
    InventoryCreate,
    InventoryListResponse,
    InventoryResponse,
    StockReservation,
)
from ..services import InventoryService, is_low_stock

router = APIRouter(prefix="/inventory", tags=["inventory"])

_read = require_permissions("inventory:read")
_write = require_permissions("inventory:write")


def _serialize_inventory(inventory: Inventory) -> dict[str, object]:
    variant = inventory.product_variant
    return {
        "id": inventory.id,
        "productVariantId": inventory.product_variant_id,
        "sku": variant.sku,
        "variantName": variant.name,
        "productName": variant.product.name,
        "quantity": inventory.quantity,
        "reserved": inventory.reserved,
        "available": inventory.available,
        "lowStockThreshold": inventory.low_stock_threshold,
        "trackInventory": inventory.track_inventory,
        "allowBackorder": inventory.allow_backorder,
        "isLowStock": is_low_stock(inventory),
        "lastRestockedAt": inventory.last_restocked_at,
        "createdAt": inventory.created_at,
        "updatedAt": inventory.updated_at,
    }


def _serialize_adjustment(adjustment: InventoryAdjustment) -> dict[str, object]:
    return {
        "id": adjustment.id,
        "quantityChange": adjustment.quantity_change,
        "reason": adjustment.reason,
        "notes": adjustment.notes,
        "userId": adjustment.user_id,
        "createdAt": adjustment.created_at,
    }


@router.post(
    "",
    response_model=InventoryResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_write)],
)
async def create_inventory(
    payload: InventoryCreate,
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryResponse:
    inventory = await service.create_inventory(payload)
    return InventoryResponse.model_validate(_serialize_inventory(inventory))


@router.get("", response_model=InventoryListResponse, dependencies=[Depends(_read)])
async def list_inventory(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    out_of_stock: bool = Query(default=False, alias="outOfStock"),
    repository: InventoryRepository = Depends(get_repository),
) -> InventoryListResponse:
    items, total = await repository.list_inventory(out_of_stock=out_of_stock, limit=limit, offset=offset)
    responses = [InventoryResponse.model_validate(_serialize_inventory(item)) for item in items]
    return InventoryListResponse(items=responses, total=total)


@router.get("/low-stock", response_model=list[InventoryResponse], dependencies=[Depends(_read)])
async def list_low_stock(repository: InventoryRepository = Depends(get_repository)) -> list[InventoryResponse]:
    items = await repository.list_low_stock()
    return [InventoryResponse.model_validate(_serialize_inventory(item)) for item in items]


@router.get("/variant/{variant_id}", response_model=InventoryResponse, dependencies=[Depends(_read)])
async def get_inventory_for_variant(
    variant_id: int,
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryResponse:
    inventory = await service.get_by_variant(variant_id)
    return InventoryResponse.model_validate(_serialize_inventory(inventory))


@router.get("/variant/{variant_id}/availability", response_model=AvailabilityResponse)
async def check_availability(
    variant_id: int,
    quantity: int = Query(default=1, ge=1),
    service: InventoryService = Depends(get_inventory_service),
) -> AvailabilityResponse:
    result = await service.check_availability(product_variant_id=variant_id, quantity=quantity)
    return AvailabilityResponse(available=result.available, currentStock=result.current_stock)


@router.get(
    "/variant/{variant_id}/adjustments",
    response_model=list[AdjustmentResponse],
    dependencies=[Depends(_read)],
)
async def list_adjustments(
    variant_id: int,
    limit: int = Query(default=50, ge=1, le=200),
    service: InventoryService = Depends(get_inventory_service),
) -> list[AdjustmentResponse]:
    inventory = await service.get_by_variant(variant_id)
    adjustments = await service.repository.list_adjustments(inventory, limit=limit)
    return [AdjustmentResponse.model_validate(_serialize_adjustment(item)) for item in adjustments]


@router.post("/adjust", response_model=InventoryResponse)
async def adjust_inventory(
    payload: InventoryAdjust,
    service: InventoryService = Depends(get_inventory_service),
    user: RequestUser = Depends(_write),
) -> InventoryResponse:
    inventory = await service.adjust_quantity(
        product_variant_id=payload.product_variant_id,
        quantity_change=payload.quantity_change,
        reason=payload.reason,
        notes=payload.notes,
        user_id=user.id,
    )
    return InventoryResponse.model_validate(_serialize_inventory(inventory))


@router.post("/reserve", response_model=InventoryResponse, dependencies=[Depends(_write)])
async def reserve_stock(
    payload: StockReservation,
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryResponse:
    inventory = await service.reserve_stock(
        product_variant_id=payload.product_variant_id, quantity=payload.quantity
    )
    return InventoryResponse.model_validate(_serialize_inventory(inventory))


@router.post("/release", response_model=InventoryResponse, dependencies=[Depends(_write)])
async def release_stock(
    payload: StockReservation,
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryResponse:
    inventory = await service.release_stock(
        product_variant_id=payload.product_variant_id, quantity=payload.quantity
    )
    return InventoryResponse.model_validate(_serialize_inventory(inventory))
