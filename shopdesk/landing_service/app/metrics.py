"""Prometheus metrics for the landing service."""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter

LANDING_CACHE_EVENTS_TOTAL: Final = Counter(
    "landing_cache_events_total",
    "Count of landing content cache interactions.",
    labelnames=("event",),
)

LANDING_SECTION_VALIDATION_FAILURES_TOTAL: Final = Counter(
    "landing_section_validation_failures_total",
    "Landing sections rejected during validation.",
    labelnames=("section_type",),
)
