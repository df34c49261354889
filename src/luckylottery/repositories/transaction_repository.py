"""Transaction repository — data access for the ``transactions`` ledger table."""

from __future__ import annotations

from typing import Any, ClassVar

from luckylottery.repositories.base import BaseRepository

# Insertion order, newest first; seq breaks ties between equal timestamps
NEWEST_FIRST = "created_at DESC, seq DESC"


class TransactionRepository(BaseRepository):
    """CRUD + ledger queries for transactions."""

    json_columns: ClassVar[tuple[str, ...]] = ("details",)

    def __init__(self, pool: Any) -> None:
        super().__init__(pool=pool, table_name="transactions", id_column="transaction_id")

    def find_by_user(
        self,
        user_id: str,
        status: str | None = None,
        transaction_type: str | None = None,
    ) -> list[dict[str, Any]]:
        """A user's transactions, most recent first, optionally filtered."""
        filters: dict[str, Any] = {"user_id": user_id}
        if status:
            filters["status"] = status
        if transaction_type:
            filters["transaction_type"] = transaction_type
        return self.find_where(filters, order_by=NEWEST_FIRST)

    def find_by_status(
        self,
        status: str,
        transaction_type: str | None = None,
    ) -> list[dict[str, Any]]:
        """All users' transactions in *status*, most recent first."""
        filters: dict[str, Any] = {"status": status}
        if transaction_type:
            filters["transaction_type"] = transaction_type
        return self.find_where(filters, order_by=NEWEST_FIRST)

    def transition_status(self, transaction_id: str, from_status: str, to_status: str) -> int:
        """Move a transaction between statuses; 0 rows if it was no longer *from_status*."""
        return self.update(
            transaction_id,
            data={"status": to_status},
            expected={"status": from_status},
        )
