"""Wallet request schemas — UPI deposits and withdrawals.

Field rules (minimum lengths, mobile format, positive amounts) are enforced by
the ledger so that they surface as 400s with the ledger's messages.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class DepositRequest(BaseModel):
    """A UPI transfer the user says they made, for admin verification."""

    amount: Decimal
    transaction_ref: str = Field(max_length=64, description="UPI transaction id")
    account_name: str = Field(max_length=100)
    screenshot: str | None = Field(default=None, description="Proof of payment (URL or data URI)")


class WithdrawalRequest(BaseModel):
    """A payout request to the user's UPI id."""

    amount: Decimal
    upi_id: str = Field(max_length=256)
    account_name: str = Field(max_length=100)
    mobile: str
