"""Bearer token authentication and permission checks shared by services."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import ServiceSettings, get_settings

ADMIN_ROLE_NAMES = frozenset({"Admin", "Super Admin"})

_bearer = HTTPBearer(auto_error=False)


@dataclass(slots=True)
class RequestUser:
    """Identity extracted from a verified access token."""

    id: str
    role_id: str | None = None
    role_name: str | None = None
    permissions: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role_name in ADMIN_ROLE_NAMES

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions


def create_access_token(
    settings: ServiceSettings,
    *,
    user_id: str,
    role_id: str | None = None,
    role_name: str | None = None,
    permissions: Iterable[str] = (),
    expires_in: timedelta | None = None,
) -> str:
    """Issue a signed access token carrying the caller's role and permissions."""

    now = datetime.now(timezone.utc)
    lifetime = expires_in or timedelta(minutes=settings.jwt_expiration_minutes)
    claims: dict[str, Any] = {
        "sub": user_id,
        "roleId": role_id,
        "roleName": role_name,
        "permissions": sorted(permissions),
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: ServiceSettings, token: str) -> RequestUser:
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    subject = claims.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is missing a subject",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return RequestUser(
        id=str(subject),
        role_id=claims.get("roleId"),
        role_name=claims.get("roleName"),
        permissions=frozenset(claims.get("permissions") or ()),
    )


def _resolve_settings(request: Request) -> ServiceSettings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


async def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> RequestUser | None:
    """Return the caller when a bearer token is supplied, otherwise None."""

    if credentials is None:
        return None
    return decode_access_token(_resolve_settings(request), credentials.credentials)


async def get_current_user(user: RequestUser | None = Depends(get_optional_user)) -> RequestUser:
    """Require an authenticated caller."""

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_permissions(*permissions: str) -> Callable[..., Any]:
    """Build a dependency rejecting callers that lack any of ``permissions``."""

    required = frozenset(permissions)

    async def _dependency(user: RequestUser = Depends(get_current_user)) -> RequestUser:
        missing = sorted(required - user.permissions)
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permissions: {', '.join(missing)}",
            )
        return user

    return _dependency
