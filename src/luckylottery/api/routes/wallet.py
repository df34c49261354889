"""Wallet routes — /api/v1/wallet.

Deposits and withdrawals are filed as pending and only move the balance once
an admin approves them.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from luckylottery.api.deps import get_current_user_id, get_services, raise_http
from luckylottery.api.schemas.wallet import DepositRequest, WithdrawalRequest
from luckylottery.core.errors import LotteryError
from luckylottery.services.ledger import LedgerService

router = APIRouter(prefix="/api/v1/wallet", tags=["wallet"])


def _get_ledger_service(request: Request) -> LedgerService:
    return get_services(request).ledger


@router.get("/deposit-info")
def deposit_info(request: Request) -> dict[str, Any]:
    """Where to send a UPI deposit before filing it."""
    settings = request.app.state.settings
    return {
        "upi_id": settings.upi_payee,
        "payment_uri": settings.upi_payment_uri,
    }


@router.post("/deposits", status_code=201)
def request_deposit(
    body: DepositRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    """File a deposit for admin verification."""
    svc = _get_ledger_service(request)
    try:
        return svc.request_deposit(
            user_id=user_id,
            amount=body.amount,
            transaction_ref=body.transaction_ref,
            account_name=body.account_name,
            screenshot=body.screenshot,
        )
    except LotteryError as e:
        raise_http(e)


@router.post("/withdrawals", status_code=201)
def request_withdrawal(
    body: WithdrawalRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    """File a withdrawal; refused when the balance cannot cover it."""
    svc = _get_ledger_service(request)
    try:
        return svc.request_withdrawal(
            user_id=user_id,
            amount=body.amount,
            upi_id=body.upi_id,
            account_name=body.account_name,
            mobile=body.mobile,
        )
    except LotteryError as e:
        raise_http(e)


@router.get("/transactions")
def list_transactions(
    request: Request,
    status: str | None = Query(default=None),
    transaction_type: str | None = Query(default=None, alias="type"),
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    """The caller's transactions, most recent first, with their balance."""
    svc = _get_ledger_service(request)
    try:
        items = svc.list_transactions(user_id, status=status, transaction_type=transaction_type)
        balance = svc.get_balance(user_id)
    except LotteryError as e:
        raise_http(e)
    return {"items": items, "balance": balance}
