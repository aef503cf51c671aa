"""Checkout orchestration: validation, totals and order placement."""

from __future__ import annotations

import logging
import re
import secrets
import time
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from shopdesk.cart_service.app.models import Cart
from shopdesk.cart_service.app.services import CartService
from shopdesk.common import ConflictError, InvalidInputError, NotFoundError, format_amount, from_cents, to_cents
from shopdesk.common.tracing import get_tracer
from shopdesk.customer_service.app.models import Customer
from shopdesk.customer_service.app.repository import CustomerRepository
from shopdesk.inventory_service.app.repository import InventoryRepository
from shopdesk.inventory_service.app.services import InventoryService
from shopdesk.order_service.app.models import FulfillmentStatus, Order, OrderStatus, PaymentStatus
from shopdesk.order_service.app.repository import OrderRepository

from .metrics import CHECKOUT_VALIDATION_FAILURES_TOTAL, ORDERS_CREATED_TOTAL
from .models import EcommerceSettings, PaymentMethod, PaymentMethodType, ShippingMethod
from .repository import CheckoutRepository
from .schemas import AddressPayload, CheckoutRequest, EcommerceSettingsPayload

_LOGGER = logging.getLogger(__name__)
_TRACER = get_tracer(__name__)

DEFAULT_ORDER_PREFIX = "ORD"
ORDER_NUMBER_ATTEMPTS = 5
REQUIRED_ADDRESS_FIELDS = (
    "first_name",
    "last_name",
    "address1",
    "city",
    "state",
    "postal_code",
    "country",
    "phone",
)
_ESTIMATED_DAYS = re.compile(r"(\d+)(?:-(\d+))?\s*days?", re.IGNORECASE)


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    cod_fee: Decimal | None = None


def cart_subtotal_cents(cart: Cart) -> int:
    return sum(item.price_snapshot_cents * item.quantity for item in cart.items)


def tax_cents_for(subtotal_cents: int, tax_rate: Decimal) -> int:
    """Tax on the pre-shipping subtotal, rounded half-up to the cent."""

    raw = Decimal(subtotal_cents) * Decimal(tax_rate) / Decimal(100)
    return int(raw.to_integral_value(rounding=ROUND_HALF_UP))


def is_address_complete(address: AddressPayload | None) -> bool:
    if address is None:
        return False
    return all((getattr(address, name) or "").strip() for name in REQUIRED_ADDRESS_FIELDS)


def extract_estimated_days(description: str | None) -> int | None:
    """Read a delivery estimate such as "5-7 days" as its upper bound."""

    if not description:
        return None
    match = _ESTIMATED_DAYS.search(description)
    if match is None:
        return None
    return int(match.group(2) or match.group(1))


def generate_order_number(prefix: str) -> str:
    timestamp = str(time.time_ns() // 1_000_000)[-8:]
    return f"{prefix}-{timestamp}-{secrets.randbelow(1000):03d}"


def guest_email(first_name: str | None) -> str:
    """Placeholder address for a guest who gave no email; unique per call."""

    local = re.sub(r"[^a-z0-9]+", "", (first_name or "").lower()) or "guest"
    return f"{local}.{secrets.token_hex(4)}@guest.com"


class CheckoutService:
    """Turns a cart into an order inside the caller's transaction."""

    def __init__(self, repository: CheckoutRepository, cart_service: CartService) -> None:
        self.repository = repository
        self.cart_service = cart_service
        session = repository.session
        self.orders = OrderRepository(session)
        self.customers = CustomerRepository(session)
        self.inventory = InventoryService(InventoryRepository(session))

    async def validate_checkout(self, payload: CheckoutRequest, user_id: str | None = None) -> ValidationResult:
        """Collect every reason the checkout cannot proceed."""

        errors: list[str] = []
        cart = await self.cart_service.get_or_create_cart(payload.session_id, user_id)
        if not cart.items:
            errors.append("Cart is empty")

        inventory = await self.cart_service.validate_inventory(payload.session_id, user_id)
        errors.extend(entry["error"] for entry in inventory.errors)

        shipping_method = await self.repository.get_shipping_method(payload.shipping_method_id)
        if shipping_method is None or not shipping_method.is_active:
            errors.append("Invalid shipping method")

        payment_method = await self.repository.get_payment_method(payload.payment_method_id)
        if payment_method is None or not payment_method.is_active:
            errors.append("Invalid payment method")

        if payment_method is not None and payment_method.type is PaymentMethodType.COD:
            errors.extend(await self.validate_cod(cart, payload.shipping_address))

        if not is_address_complete(payload.shipping_address):
            errors.append("Invalid shipping address")
        if not payload.same_as_shipping and not is_address_complete(payload.billing_address):
            errors.append("Invalid billing address")

        if errors:
            CHECKOUT_VALIDATION_FAILURES_TOTAL.inc()
        return ValidationResult(valid=not errors, errors=errors)

    async def validate_cod(self, cart: Cart, shipping_address: AddressPayload) -> list[str]:
        settings = await self.repository.get_settings()
        if settings is None:
            return ["E-commerce settings not found"]

        errors: list[str] = []
        if not settings.cod_enabled:
            errors.append("Cash on Delivery is not available")

        subtotal = cart_subtotal_cents(cart)
        symbol = settings.currency_symbol
        if settings.cod_min_order_cents and subtotal < settings.cod_min_order_cents:
            errors.append(
                f"Minimum order amount for COD is {symbol}{format_amount(from_cents(settings.cod_min_order_cents))}"
            )
        if settings.cod_max_order_cents and subtotal > settings.cod_max_order_cents:
            errors.append(
                f"Maximum order amount for COD is {symbol}{format_amount(from_cents(settings.cod_max_order_cents))}"
            )

        countries = settings.cod_available_countries or []
        if countries and shipping_address.country not in countries:
            errors.append("Cash on Delivery is not available in your country")
        return errors

    async def calculate_shipping(self, shipping_method_id: int) -> Decimal:
        method = await self.repository.get_shipping_method(shipping_method_id)
        if method is None:
            raise NotFoundError("Shipping method not found")
        return from_cents(method.price_cents)

    async def calculate_tax(self, cart_id: int) -> Decimal:
        cart = await self._require_cart(cart_id)
        settings = await self.repository.get_settings()
        tax_rate = settings.tax_rate if settings is not None else Decimal(0)
        return from_cents(tax_cents_for(cart_subtotal_cents(cart), tax_rate))

    async def calculate_order_totals(
        self,
        cart_id: int,
        shipping_method_id: int,
        shipping_address: AddressPayload | None = None,
        payment_method_id: int | None = None,
    ) -> OrderTotals:
        cart = await self._require_cart(cart_id)
        subtotal = cart_subtotal_cents(cart)
        shipping = to_cents(await self.calculate_shipping(shipping_method_id))
        tax = to_cents(await self.calculate_tax(cart_id))

        cod_fee = 0
        if payment_method_id is not None:
            payment_method = await self.repository.get_payment_method(payment_method_id)
            if payment_method is not None and payment_method.type is PaymentMethodType.COD:
                settings = await self.repository.get_settings()
                cod_fee = settings.cod_fee_cents if settings is not None else 0

        return OrderTotals(
            subtotal=from_cents(subtotal),
            tax=from_cents(tax),
            shipping=from_cents(shipping),
            total=from_cents(subtotal + shipping + tax + cod_fee),
            cod_fee=from_cents(cod_fee) if cod_fee > 0 else None,
        )

    async def create_order_from_cart(self, payload: CheckoutRequest, user_id: str | None = None) -> Order:
        with _TRACER.start_as_current_span("checkout.place_order") as span:
            span.set_attribute("checkout.payment_method_id", payload.payment_method_id)
            span.set_attribute("checkout.shipping_method_id", payload.shipping_method_id)
            order = await self._place_order(payload, user_id)
            span.set_attribute("order.number", order.order_number)
            return order

    async def _place_order(self, payload: CheckoutRequest, user_id: str | None) -> Order:
        validation = await self.validate_checkout(payload, user_id)
        if not validation.valid:
            raise InvalidInputError(", ".join(validation.errors), errors=validation.errors)

        cart = await self.cart_service.get_or_create_cart(payload.session_id, user_id)
        totals = await self.calculate_order_totals(
            cart.id,
            payload.shipping_method_id,
            payload.shipping_address,
            payload.payment_method_id,
        )
        shipping_address = payload.shipping_address.as_record()
        billing_source = payload.shipping_address if payload.same_as_shipping else payload.billing_address
        billing_address = billing_source.as_record() if billing_source is not None else shipping_address

        customer = await self._resolve_customer(payload, user_id, shipping_address, billing_address)
        settings = await self.repository.get_settings()
        order_number = await self._allocate_order_number(settings)

        order = await self.orders.create_order(
            order_number=order_number,
            customer_id=customer.id,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            fulfillment_status=FulfillmentStatus.UNFULFILLED,
            subtotal_cents=to_cents(totals.subtotal),
            tax_cents=to_cents(totals.tax),
            shipping_cents=to_cents(totals.shipping),
            total_cents=to_cents(totals.total),
            shipping_address=shipping_address,
            billing_address=billing_address,
            shipping_method_id=payload.shipping_method_id,
            payment_method_id=payload.payment_method_id,
            customer_email=customer.email,
            customer_name=f"{customer.first_name} {customer.last_name}".strip(),
            customer_phone=customer.phone,
            customer_notes=payload.customer_notes,
            items=[self._order_line(item) for item in cart.items],
        )

        for item in cart.items:
            if item.product_variant_id is not None:
                await self.inventory.reserve_stock(
                    product_variant_id=item.product_variant_id, quantity=item.quantity
                )

        await self.cart_service.clear_cart(cart.id)
        await self.orders.add_history(order, from_status=None, to_status=OrderStatus.PENDING, notes="Order created")

        payment_method = await self.repository.get_payment_method(payload.payment_method_id)
        ORDERS_CREATED_TOTAL.labels(payment_type=payment_method.type.value if payment_method else "unknown").inc()
        _LOGGER.info("Created order %s for customer %s (total %s)", order.order_number, customer.id, totals.total)
        return order

    async def get_payment_methods(self) -> list[dict[str, Any]]:
        methods = await self.repository.list_payment_methods()
        return [self.describe_payment_method(method) for method in methods]

    async def get_shipping_methods(self) -> list[dict[str, Any]]:
        methods = await self.repository.list_shipping_methods()
        return [
            {
                "id": method.id,
                "name": method.name,
                "description": method.description,
                "price": from_cents(method.price_cents),
                "available": method.is_active,
                "estimatedDays": extract_estimated_days(method.description),
            }
            for method in methods
        ]

    async def create_shipping_method(self, **values: Any) -> ShippingMethod:
        return await self.repository.add(ShippingMethod(**values))

    async def create_payment_method(self, **values: Any) -> PaymentMethod:
        return await self.repository.add(PaymentMethod(**values))

    async def get_settings(self) -> EcommerceSettings:
        settings = await self.repository.get_settings()
        if settings is None:
            raise NotFoundError("E-commerce settings not found")
        return settings

    async def update_settings(self, payload: EcommerceSettingsPayload) -> EcommerceSettings:
        values = {
            "store_name": payload.store_name,
            "currency": payload.currency.upper(),
            "currency_symbol": payload.currency_symbol,
            "tax_rate": payload.tax_rate,
            "order_number_prefix": payload.order_number_prefix,
            "cod_enabled": payload.cod_enabled,
            "cod_fee_cents": to_cents(payload.cod_fee),
            "cod_min_order_cents": (
                to_cents(payload.cod_min_order_amount) if payload.cod_min_order_amount is not None else None
            ),
            "cod_max_order_cents": (
                to_cents(payload.cod_max_order_amount) if payload.cod_max_order_amount is not None else None
            ),
            "cod_available_countries": list(payload.cod_available_countries),
        }
        settings = await self.repository.get_settings()
        if settings is None:
            return await self.repository.add(EcommerceSettings(scope="global", **values))
        for name, value in values.items():
            setattr(settings, name, value)
        await self.repository.session.flush()
        await self.repository.session.refresh(settings)
        return settings

    async def _require_cart(self, cart_id: int) -> Cart:
        cart = await self.cart_service.repository.get_cart(cart_id)
        if cart is None:
            raise NotFoundError("Cart not found")
        return cart

    async def _resolve_customer(
        self,
        payload: CheckoutRequest,
        user_id: str | None,
        shipping_address: dict[str, Any],
        billing_address: dict[str, Any],
    ) -> Customer:
        """Pick the customer an order belongs to.

        Only the customer linked to the signed-in user has its addresses
        refreshed. A customer found by an explicitly supplied email is reused
        as is; without an email every checkout gets a fresh guest record.
        """

        address = payload.shipping_address
        if user_id:
            customer = await self.customers.get_by_user_id(user_id)
            if customer is not None:
                return await self.customers.update_customer(
                    customer, {"shipping_address": shipping_address, "billing_address": billing_address}
                )

        if payload.customer_email:
            email = payload.customer_email.strip().lower()
            customer = await self.customers.get_by_email(email)
            if customer is not None:
                return customer
        else:
            email = guest_email(address.first_name)

        return await self.customers.create_customer(
            email=email,
            first_name=address.first_name or "",
            last_name=address.last_name or "",
            phone=address.phone,
            user_id=user_id,
            shipping_address=shipping_address,
            billing_address=billing_address,
        )

    async def _allocate_order_number(self, settings: EcommerceSettings | None) -> str:
        prefix = (settings.order_number_prefix if settings is not None else None) or DEFAULT_ORDER_PREFIX
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            candidate = generate_order_number(prefix)
            if not await self.orders.order_number_exists(candidate):
                return candidate
            _LOGGER.warning("Order number collision on %s, retrying", candidate)
        raise ConflictError("Could not allocate a unique order number")

    @staticmethod
    def _order_line(item: Any) -> dict[str, Any]:
        product = item.product
        variant = item.product_variant
        return {
            "product_id": item.product_id,
            "product_variant_id": item.product_variant_id,
            "product_name": product.name if product is not None else "Unknown Product",
            "variant_name": variant.name if variant is not None else None,
            "sku": variant.sku if variant is not None else product.slug,
            "quantity": item.quantity,
            "unit_price_cents": item.price_snapshot_cents,
            "total_price_cents": item.price_snapshot_cents * item.quantity,
        }

    @staticmethod
    def describe_payment_method(method: PaymentMethod) -> dict[str, Any]:
        config = method.configuration or {}
        max_amount = config.get("maxOrderAmount")
        return {
            "id": method.id,
            "name": method.name,
            "type": method.type,
            "description": method.description,
            "available": method.is_active,
            "fee": Decimal(str(config.get("fee") or 0)),
            "minOrderAmount": Decimal(str(config.get("minOrderAmount") or 0)),
            "maxOrderAmount": Decimal(str(max_amount)) if max_amount else None,
        }
