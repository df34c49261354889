"""Ticket request schemas."""

from __future__ import annotations

from pydantic import BaseModel


class PurchaseRequest(BaseModel):
    """Buy a ticket.

    Without ``numbers`` the caller's saved selection is used and cleared.
    """

    numbers: list[int] | None = None
