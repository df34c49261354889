"""Ticket repository — data access for the ``tickets`` table."""

from __future__ import annotations

from typing import Any, ClassVar

from luckylottery.core.constants import TICKET_ACTIVE
from luckylottery.repositories.base import BaseRepository


class TicketRepository(BaseRepository):
    """CRUD + domain queries for tickets."""

    json_columns: ClassVar[tuple[str, ...]] = ("numbers",)

    def __init__(self, pool: Any) -> None:
        super().__init__(pool=pool, table_name="tickets", id_column="ticket_id")

    def find_by_user(self, user_id: str, status: str | None = None) -> list[dict[str, Any]]:
        """A user's tickets, most recent purchase first."""
        filters: dict[str, Any] = {"user_id": user_id}
        if status:
            filters["status"] = status
        return self.find_where(filters, order_by="purchase_date DESC, seq DESC")

    def find_active(self) -> list[dict[str, Any]]:
        """Every ticket still waiting for a draw, oldest first."""
        return self.find_where({"status": TICKET_ACTIVE}, order_by="purchase_date, seq")

    def settle(self, ticket_id: str, data: dict[str, Any]) -> int:
        """Write a ticket's outcome; 0 rows if it was already settled."""
        return self.update(ticket_id, data=data, expected={"status": TICKET_ACTIVE})
