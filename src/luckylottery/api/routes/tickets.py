"""Ticket routes — /api/v1/tickets."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from luckylottery.api.deps import get_current_user_id, get_services, raise_http
from luckylottery.api.schemas.tickets import PurchaseRequest
from luckylottery.core.constants import NUMBERS_PER_TICKET
from luckylottery.core.errors import LotteryError
from luckylottery.services.tickets import TicketService

router = APIRouter(prefix="/api/v1/tickets", tags=["tickets"])


def _get_ticket_service(request: Request) -> TicketService:
    return get_services(request).tickets


def _selection_body(numbers: list[int]) -> dict[str, Any]:
    return {
        "numbers": numbers,
        "count": len(numbers),
        "complete": len(numbers) == NUMBERS_PER_TICKET,
    }


# ── Selection ───────────────────────────────────────────────────────


@router.get("/selection")
def get_selection(request: Request, user_id: str = Depends(get_current_user_id)) -> dict[str, Any]:
    svc = _get_ticket_service(request)
    try:
        return _selection_body(svc.get_selection(user_id))
    except LotteryError as e:
        raise_http(e)


@router.post("/selection/{number}")
def toggle_number(
    number: int,
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    """Add the number to the pick, or remove it if already picked."""
    svc = _get_ticket_service(request)
    try:
        return _selection_body(svc.toggle_number(user_id, number))
    except LotteryError as e:
        raise_http(e)


@router.delete("/selection")
def clear_selection(request: Request, user_id: str = Depends(get_current_user_id)) -> dict[str, Any]:
    svc = _get_ticket_service(request)
    try:
        return _selection_body(svc.clear_selection(user_id))
    except LotteryError as e:
        raise_http(e)


# ── Purchase / listing ──────────────────────────────────────────────


@router.post("/purchase", status_code=201)
def purchase(
    request: Request,
    body: PurchaseRequest | None = None,
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    """Buy a ticket with the saved selection or an explicit pick."""
    svc = _get_ticket_service(request)
    try:
        if body is not None and body.numbers is not None:
            return svc.purchase_numbers(user_id, body.numbers)
        return svc.purchase(user_id)
    except LotteryError as e:
        raise_http(e)


@router.get("")
def list_tickets(
    request: Request,
    status: str | None = Query(default=None),
    user_id: str = Depends(get_current_user_id),
) -> dict[str, Any]:
    """The caller's tickets, most recent purchase first."""
    svc = _get_ticket_service(request)
    try:
        return {"items": svc.list_tickets(user_id, status=status)}
    except LotteryError as e:
        raise_http(e)


@router.get("/results")
def list_results(request: Request, user_id: str = Depends(get_current_user_id)) -> dict[str, Any]:
    """The caller's tickets that have been through a draw."""
    svc = _get_ticket_service(request)
    return {"items": svc.list_results(user_id)}
