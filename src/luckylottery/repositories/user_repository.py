"""User repository — data access for the ``users`` table."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from luckylottery.repositories.base import BaseRepository


class UserRepository(BaseRepository):
    """CRUD + balance queries for users."""

    def __init__(self, pool: Any) -> None:
        super().__init__(pool=pool, table_name="users", id_column="user_id")

    def find_by_email(self, email: str) -> dict[str, Any] | None:
        """Find a user by email address."""
        results = self.find_by_field("email", email)
        return results[0] if results else None

    def list_users(self, limit: int = 100, offset: int = 0) -> list[dict[str, Any]]:
        """Users newest first."""
        return self.find_all(limit=limit, offset=offset, order_by="created_at DESC")

    def lock_for_update(self, user_id: str) -> dict[str, Any] | None:
        """Read the user row and hold its lock until the unit of work ends.

        Serializes balance writers across processes, which the in-process
        lock registry cannot.
        """
        rows = self._select(
            "SELECT * FROM users WHERE user_id = :id FOR UPDATE", {"id": user_id}
        )
        return rows[0] if rows else None

    def apply_balance_delta(self, user_id: str, delta: Decimal) -> int:
        """Add *delta* (possibly negative) to the cached balance in one statement."""
        sql = "UPDATE users SET balance = balance + :delta WHERE user_id = :id"
        return self._execute(sql, {"delta": delta, "id": user_id})

    def set_balance(self, user_id: str, balance: Decimal) -> int:
        """Overwrite the cached balance. Only used for ledger repair."""
        return self.update(user_id, data={"balance": balance})
