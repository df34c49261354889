"""Authentication routes — /api/v1/auth."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from luckylottery.api.deps import get_services, raise_http
from luckylottery.api.schemas.auth import LoginRequest, RegisterRequest
from luckylottery.core.errors import LotteryError
from luckylottery.services.accounts import AccountService

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _get_account_service(request: Request) -> AccountService:
    return get_services(request).accounts


@router.post("/register", status_code=201)
def register(body: RegisterRequest, request: Request) -> dict[str, Any]:
    """Register a new user account (starts with a zero balance)."""
    svc = _get_account_service(request)
    try:
        return svc.register(
            name=body.name,
            email=body.email,
            mobile=body.mobile,
            password=body.password,
        )
    except LotteryError as e:
        raise_http(e)


@router.post("/login")
def login(body: LoginRequest, request: Request) -> dict[str, Any]:
    """Login with email and password."""
    svc = _get_account_service(request)
    try:
        return svc.login(email=body.email, password=body.password)
    except LotteryError as e:
        raise_http(e)
