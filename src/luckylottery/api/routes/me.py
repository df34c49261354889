"""Current user routes — /api/v1/me."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from luckylottery.api.deps import get_current_user_id, get_services, raise_http
from luckylottery.core.errors import LotteryError
from luckylottery.services.accounts import AccountService

router = APIRouter(prefix="/api/v1/me", tags=["me"])


def _get_account_service(request: Request) -> AccountService:
    return get_services(request).accounts


@router.get("")
def get_me(request: Request, user_id: str = Depends(get_current_user_id)) -> dict[str, Any]:
    """The logged-in user with their current balance."""
    svc = _get_account_service(request)
    try:
        return svc.get_user(user_id)
    except LotteryError as e:
        raise_http(e)
