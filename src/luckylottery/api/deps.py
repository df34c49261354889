"""Dependency injection for FastAPI routes."""

from __future__ import annotations

from typing import Any, NoReturn

from fastapi import Depends, Header, HTTPException, Request

from luckylottery.core.errors import LotteryError
from luckylottery.core.security import decode_token_safe
from luckylottery.services.container import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    """The container built at startup; 503 when the database never came up."""
    services: ServiceContainer | None = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Service unavailable: database not connected")
    return services


def raise_http(err: LotteryError) -> NoReturn:
    """Convert a service error to HTTPException."""
    raise HTTPException(status_code=err.status_code, detail=err.detail) from err


# ── Auth Dependencies ───────────────────────────────────────────────


def get_current_user(
    authorization: str | None = Header(default=None),
) -> dict[str, Any]:
    """Extract and validate JWT from Authorization header.

    Returns the decoded token payload (contains sub, role, type).
    """
    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Invalid Authorization header format. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token_safe(parts[1])
    if payload is None or payload.get("type") != "access":
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


def require_admin(
    current_user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    """Require admin role."""
    if current_user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


def get_current_user_id(
    current_user: dict[str, Any] = Depends(get_current_user),
) -> str:
    """Extract user_id from the current authenticated user."""
    user_id = current_user.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    return str(user_id)
