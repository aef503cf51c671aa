"""API routes for cart management."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from shopdesk.common import from_cents
from shopdesk.common.auth import RequestUser, get_current_user, get_optional_user

from ..dependencies import get_cart_service
from ..models import Cart, CartItem
from ..schemas import (
    AddToCartRequest,
    CartResponse,
    CartTotalsResponse,
    InventoryValidationResponse,
    MergeCartRequest,
    UpdateCartItemRequest,
)
from ..services import CartService, compute_totals

router = APIRouter(prefix="/cart", tags=["cart"])


def _serialize_item(item: CartItem) -> dict[str, object]:
    product = item.product
    variant = item.product_variant
    return {
        "id": item.id,
        "cartId": item.cart_id,
        "productId": item.product_id,
        "productVariantId": item.product_variant_id,
        "quantity": item.quantity,
        "priceSnapshot": from_cents(item.price_snapshot_cents),
        "product": (
            {
                "id": product.id,
                "name": product.name,
                "slug": product.slug,
                "featuredImage": product.featured_image,
                "basePrice": from_cents(product.base_price_cents),
            }
            if product is not None
            else None
        ),
        "productVariant": (
            {
                "id": variant.id,
                "name": variant.name,
                "price": from_cents(variant.price_cents) if variant.price_cents is not None else None,
                "image": variant.image,
            }
            if variant is not None
            else None
        ),
        "createdAt": item.created_at,
        "updatedAt": item.updated_at,
    }


def serialize_cart(cart: Cart) -> CartResponse:
    totals = compute_totals(cart)
    return CartResponse.model_validate(
        {
            "id": cart.id,
            "sessionId": cart.session_id,
            "userId": cart.user_id,
            "expiresAt": cart.expires_at,
            "items": [_serialize_item(item) for item in cart.items],
            "subtotal": totals.subtotal,
            "itemCount": totals.item_count,
            "createdAt": cart.created_at,
            "updatedAt": cart.updated_at,
        }
    )


def _user_id(user: RequestUser | None) -> str | None:
    return user.id if user is not None else None


@router.get("", response_model=CartResponse)
async def get_cart(
    session_id: str | None = Query(default=None, alias="sessionId"),
    user: RequestUser | None = Depends(get_optional_user),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.get_or_create_cart(session_id, _user_id(user))
    return serialize_cart(cart)


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    payload: AddToCartRequest,
    user: RequestUser | None = Depends(get_optional_user),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.add_to_cart(
        product_id=payload.product_id,
        product_variant_id=payload.product_variant_id,
        quantity=payload.quantity,
        session_id=payload.session_id,
        user_id=_user_id(user),
    )
    return serialize_cart(cart)


@router.patch("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: int,
    payload: UpdateCartItemRequest,
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.update_cart_item(item_id, quantity=payload.quantity)
    return serialize_cart(cart)


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    item_id: int,
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.remove_cart_item(item_id)
    return serialize_cart(cart)


@router.get("/totals", response_model=CartTotalsResponse)
async def get_cart_totals(
    session_id: str | None = Query(default=None, alias="sessionId"),
    user: RequestUser | None = Depends(get_optional_user),
    service: CartService = Depends(get_cart_service),
) -> CartTotalsResponse:
    cart = await service.get_or_create_cart(session_id, _user_id(user))
    totals = compute_totals(cart)
    return CartTotalsResponse(subtotal=totals.subtotal, itemCount=totals.item_count)


@router.post("/validate", response_model=InventoryValidationResponse)
async def validate_cart(
    session_id: str | None = Query(default=None, alias="sessionId"),
    user: RequestUser | None = Depends(get_optional_user),
    service: CartService = Depends(get_cart_service),
) -> InventoryValidationResponse:
    result = await service.validate_inventory(session_id, _user_id(user))
    return InventoryValidationResponse(valid=result.valid, errors=result.errors)


@router.post("/merge", response_model=CartResponse)
async def merge_cart(
    payload: MergeCartRequest,
    user: RequestUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.merge_cart(payload.session_id, user.id)
    return serialize_cart(cart)


@router.delete("/{cart_id}", response_model=CartResponse)
async def clear_cart(
    cart_id: int,
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.clear_cart(cart_id)
    return serialize_cart(cart)
