"""HTTP routes for checkout and checkout configuration."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from shopdesk.common import from_cents, to_cents
from shopdesk.common.auth import RequestUser, get_optional_user, require_permissions
from shopdesk.order_service.app.api.orders import serialize_order
from shopdesk.order_service.app.schemas import OrderResponse

from ..dependencies import get_checkout_service
from ..models import EcommerceSettings
from ..schemas import (
    CheckoutRequest,
    EcommerceSettingsPayload,
    EcommerceSettingsResponse,
    PaymentMethodCreate,
    PaymentMethodResponse,
    ShippingMethodCreate,
    ShippingMethodResponse,
    ShippingRequest,
    ShippingResponse,
    TaxRequest,
    TotalsRequest,
    TaxResponse,
    TotalsResponse,
    ValidationResponse,
)
from ..services import CheckoutService, extract_estimated_days

router = APIRouter(prefix="/checkout", tags=["checkout"])

_manage = require_permissions("settings:write")


def _user_id(user: RequestUser | None) -> str | None:
    return user.id if user is not None else None


def _serialize_settings(settings: EcommerceSettings) -> EcommerceSettingsResponse:
    return EcommerceSettingsResponse.model_validate(
        {
            "id": settings.id,
            "scope": settings.scope,
            "storeName": settings.store_name,
            "currency": settings.currency,
            "currencySymbol": settings.currency_symbol,
            "taxRate": settings.tax_rate,
            "orderNumberPrefix": settings.order_number_prefix,
            "codEnabled": settings.cod_enabled,
            "codFee": from_cents(settings.cod_fee_cents),
            "codMinOrderAmount": (
                from_cents(settings.cod_min_order_cents) if settings.cod_min_order_cents is not None else None
            ),
            "codMaxOrderAmount": (
                from_cents(settings.cod_max_order_cents) if settings.cod_max_order_cents is not None else None
            ),
            "codAvailableCountries": settings.cod_available_countries or [],
        }
    )


@router.post("/validate", response_model=ValidationResponse)
async def validate_checkout(
    payload: CheckoutRequest,
    user: RequestUser | None = Depends(get_optional_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> ValidationResponse:
    result = await service.validate_checkout(payload, _user_id(user))
    return ValidationResponse(valid=result.valid, errors=result.errors)


@router.post("/shipping", response_model=ShippingResponse)
async def calculate_shipping(
    payload: ShippingRequest, service: CheckoutService = Depends(get_checkout_service)
) -> ShippingResponse:
    return ShippingResponse(shipping=await service.calculate_shipping(payload.shipping_method_id))


@router.post("/tax", response_model=TaxResponse)
async def calculate_tax(
    payload: TaxRequest, service: CheckoutService = Depends(get_checkout_service)
) -> TaxResponse:
    return TaxResponse(tax=await service.calculate_tax(payload.cart_id))


@router.post("/totals", response_model=TotalsResponse, response_model_exclude_none=True)
async def calculate_totals(
    payload: TotalsRequest, service: CheckoutService = Depends(get_checkout_service)
) -> TotalsResponse:
    totals = await service.calculate_order_totals(
        payload.cart_id,
        payload.shipping_method_id,
        payload.shipping_address,
        payload.payment_method_id,
    )
    return TotalsResponse(
        subtotal=totals.subtotal,
        tax=totals.tax,
        shipping=totals.shipping,
        codFee=totals.cod_fee,
        total=totals.total,
    )


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: CheckoutRequest,
    user: RequestUser | None = Depends(get_optional_user),
    service: CheckoutService = Depends(get_checkout_service),
) -> OrderResponse:
    order = await service.create_order_from_cart(payload, _user_id(user))
    return serialize_order(order)


@router.get("/payment-methods", response_model=list[PaymentMethodResponse])
async def get_payment_methods(
    service: CheckoutService = Depends(get_checkout_service),
) -> list[PaymentMethodResponse]:
    return [PaymentMethodResponse.model_validate(entry) for entry in await service.get_payment_methods()]


@router.get("/shipping-methods", response_model=list[ShippingMethodResponse])
async def get_shipping_methods(
    service: CheckoutService = Depends(get_checkout_service),
) -> list[ShippingMethodResponse]:
    return [ShippingMethodResponse.model_validate(entry) for entry in await service.get_shipping_methods()]


@router.post(
    "/shipping-methods",
    response_model=ShippingMethodResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_manage)],
)
async def create_shipping_method(
    payload: ShippingMethodCreate, service: CheckoutService = Depends(get_checkout_service)
) -> ShippingMethodResponse:
    method = await service.create_shipping_method(
        name=payload.name,
        description=payload.description,
        price_cents=to_cents(payload.price),
        is_active=payload.is_active,
    )
    return ShippingMethodResponse(
        id=method.id,
        name=method.name,
        description=method.description,
        price=from_cents(method.price_cents),
        available=method.is_active,
        estimatedDays=extract_estimated_days(method.description),
    )


@router.post(
    "/payment-methods",
    response_model=PaymentMethodResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_manage)],
)
async def create_payment_method(
    payload: PaymentMethodCreate, service: CheckoutService = Depends(get_checkout_service)
) -> PaymentMethodResponse:
    method = await service.create_payment_method(
        name=payload.name,
        type=payload.type,
        description=payload.description,
        is_active=payload.is_active,
        display_order=payload.display_order,
        configuration=payload.configuration,
    )
    return PaymentMethodResponse.model_validate(service.describe_payment_method(method))


@router.get("/settings", response_model=EcommerceSettingsResponse, dependencies=[Depends(_manage)])
async def get_settings(service: CheckoutService = Depends(get_checkout_service)) -> EcommerceSettingsResponse:
    return _serialize_settings(await service.get_settings())


@router.put("/settings", response_model=EcommerceSettingsResponse, dependencies=[Depends(_manage)])
async def update_settings(
    payload: EcommerceSettingsPayload, service: CheckoutService = Depends(get_checkout_service)
) -> EcommerceSettingsResponse:
    return _serialize_settings(await service.update_settings(payload))
