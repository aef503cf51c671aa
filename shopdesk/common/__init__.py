"""Shared utilities for shopdesk services."""

from .config import DEFAULT_APP_NAME, ServiceSettings, get_settings
from .instrumentation import build_app, instrument_app
from .logging import configure_logging
from .database import (
    DEFAULT_DATABASE_URL,
    create_engine,
    dispose_engines,
    get_session_factory,
    lifespan_session,
    resolve_database_url,
)
from .errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError, ServiceError
from .models import Base
from .money import from_cents, format_amount, to_cents

__all__ = [
    "ServiceSettings",
    "get_settings",
    "build_app",
    "instrument_app",
    "configure_logging",
    "DEFAULT_APP_NAME",
    "DEFAULT_DATABASE_URL",
    "create_engine",
    "dispose_engines",
    "get_session_factory",
    "lifespan_session",
    "resolve_database_url",
    "Base",
    "ServiceError",
    "NotFoundError",
    "InvalidInputError",
    "ConflictError",
    "ForbiddenError",
    "to_cents",
    "from_cents",
    "format_amount",
]
