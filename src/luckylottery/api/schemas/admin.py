"""Admin request schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TransactionDecision(BaseModel):
    """Which moderation queue the transaction is resolved from."""

    transaction_type: str = Field(pattern=r"^(deposit|withdraw)$")


class RunDrawRequest(BaseModel):
    """Optional fixed winning numbers for a deterministic draw."""

    winning_numbers: list[int] | None = None
