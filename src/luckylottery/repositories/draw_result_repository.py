"""Draw result repository — append-only log of executed draws."""

from __future__ import annotations

from typing import Any, ClassVar

from luckylottery.repositories.base import BaseRepository


class DrawResultRepository(BaseRepository):
    """Insert + recent-first queries for ``draw_results``."""

    json_columns: ClassVar[tuple[str, ...]] = ("numbers", "tiers")

    def __init__(self, pool: Any) -> None:
        super().__init__(pool=pool, table_name="draw_results", id_column="draw_id")

    def find_recent(self, limit: int = 10) -> list[dict[str, Any]]:
        """Most recent draws first."""
        return self.find_all(limit=limit, order_by="draw_date DESC")

    def find_latest(self) -> dict[str, Any] | None:
        results = self.find_recent(limit=1)
        return results[0] if results else None
