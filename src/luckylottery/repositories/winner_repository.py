"""Winner repository — denormalized read model of winning tickets."""

from __future__ import annotations

from typing import Any, ClassVar

from luckylottery.repositories.base import BaseRepository


class WinnerRepository(BaseRepository):
    """Insert + listing queries for ``winners``."""

    json_columns: ClassVar[tuple[str, ...]] = ("numbers",)

    def __init__(self, pool: Any) -> None:
        super().__init__(pool=pool, table_name="winners", id_column="winner_id")

    def find_recent(self, limit: int = 20) -> list[dict[str, Any]]:
        """Latest winners first, biggest prize first within a draw."""
        return self.find_all(limit=limit, order_by="draw_date DESC, prize DESC")

    def find_by_draw(self, draw_id: str) -> list[dict[str, Any]]:
        return self.find_where({"draw_id": draw_id}, order_by="prize DESC")
