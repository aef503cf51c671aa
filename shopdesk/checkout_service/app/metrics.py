"""Prometheus metrics for the checkout service."""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter

ORDERS_CREATED_TOTAL: Final = Counter(
    "checkout_orders_created_total",
    "Orders created from carts.",
    labelnames=("payment_type",),
)

CHECKOUT_VALIDATION_FAILURES_TOTAL: Final = Counter(
    "checkout_validation_failures_total",
    "Checkout validations that reported at least one error.",
)
