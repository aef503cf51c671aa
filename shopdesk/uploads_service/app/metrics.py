"""Prometheus metrics for the uploads service."""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter

UPLOADS_STORED_TOTAL: Final = Counter(
    "uploads_stored_total",
    "Number of files written to upload storage.",
    labelnames=("kind", "content_type"),
)

UPLOADS_REJECTED_TOTAL: Final = Counter(
    "uploads_rejected_total",
    "Number of files rejected before storage.",
    labelnames=("reason",),
)

UPLOADS_DELETED_TOTAL: Final = Counter(
    "uploads_deleted_total",
    "Number of upload records removed.",
    labelnames=("mode",),
)


def normalise_content_type(content_type: str | None) -> str:
    """Return a low-cardinality representation of a MIME type."""

    if not content_type:
        return "unknown"
    return content_type.split(";")[0].strip().lower() or "unknown"
