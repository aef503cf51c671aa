"""Domain errors raised by service layers and rendered by the HTTP layer."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

_LOGGER = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, errors: Sequence[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors) if errors else []


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidInputError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


async def _handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        _LOGGER.error("Unhandled service failure on %s: %s", request.url.path, exc.message)
    else:
        _LOGGER.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    content: dict[str, object] = {"detail": exc.message}
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


def register_error_handlers(app: FastAPI) -> None:
    """Render ServiceError subclasses as JSON responses."""

    app.add_exception_handler(ServiceError, _handle_service_error)  # type: ignore[arg-type]
