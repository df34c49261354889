"""Admin routes — /api/v1/admin.

Moderation of pending deposits and withdrawals, the manual draw trigger, the
user list and the balance audit.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from luckylottery.api.deps import get_services, raise_http, require_admin
from luckylottery.api.schemas.admin import RunDrawRequest, TransactionDecision
from luckylottery.core.errors import LotteryError
from luckylottery.services.admin import AdminService

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


def _get_admin_service(request: Request) -> AdminService:
    return get_services(request).admin


@router.get("/deposits/pending")
def pending_deposits(
    request: Request,
    _admin: dict[str, Any] = Depends(require_admin),
) -> dict[str, Any]:
    return {"items": _get_admin_service(request).pending_deposits()}


@router.get("/withdrawals/pending")
def pending_withdrawals(
    request: Request,
    _admin: dict[str, Any] = Depends(require_admin),
) -> dict[str, Any]:
    return {"items": _get_admin_service(request).pending_withdrawals()}


@router.post("/transactions/{transaction_id}/approve")
def approve_transaction(
    transaction_id: str,
    body: TransactionDecision,
    request: Request,
    _admin: dict[str, Any] = Depends(require_admin),
) -> dict[str, Any]:
    """Complete a pending deposit or withdrawal and move the balance."""
    svc = _get_admin_service(request)
    try:
        return svc.approve_transaction(transaction_id, body.transaction_type)
    except LotteryError as e:
        raise_http(e)


@router.post("/transactions/{transaction_id}/reject")
def reject_transaction(
    transaction_id: str,
    body: TransactionDecision,
    request: Request,
    _admin: dict[str, Any] = Depends(require_admin),
) -> dict[str, Any]:
    """Reject a pending deposit or withdrawal; the balance is untouched."""
    svc = _get_admin_service(request)
    try:
        return svc.reject_transaction(transaction_id, body.transaction_type)
    except LotteryError as e:
        raise_http(e)


@router.post("/draws/run", status_code=201)
def run_draw(
    request: Request,
    body: RunDrawRequest | None = None,
    _admin: dict[str, Any] = Depends(require_admin),
) -> dict[str, Any]:
    """Run the daily draw now over every active ticket."""
    winning_numbers = body.winning_numbers if body is not None else None
    if winning_numbers is not None and request.app.state.settings.is_production:
        raise HTTPException(status_code=403, detail="Fixed winning numbers are not allowed in production")
    svc = _get_admin_service(request)
    try:
        return svc.run_daily_draw(winning_numbers=winning_numbers)
    except LotteryError as e:
        raise_http(e)


@router.get("/users")
def list_users(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    _admin: dict[str, Any] = Depends(require_admin),
) -> dict[str, Any]:
    users = _get_admin_service(request).list_users(limit=limit, offset=(page - 1) * limit)
    return {"items": users, "page": page, "limit": limit}


@router.get("/audit")
def audit_balances(
    request: Request,
    _admin: dict[str, Any] = Depends(require_admin),
) -> dict[str, Any]:
    """Compare every cached balance with its ledger sum (read-only)."""
    return _get_admin_service(request).audit_balances()
