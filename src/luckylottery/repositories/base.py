"""Base repository providing generic CRUD operations for Oracle DB."""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, ClassVar

import oracledb

from luckylottery.core.database import get_active_connection

logger = logging.getLogger(__name__)

SLOW_QUERY_THRESHOLD_MS = 100  # Log queries slower than this


class BaseRepository:
    """Generic repository with CRUD operations using python-oracledb.

    All entity repositories extend this class and configure
    ``table_name`` and ``id_column``. Columns listed in ``json_columns`` are
    stored as JSON text and decoded on read.

    When a unit of work is active (see ``core.database.atomic``) every call
    runs on its connection and leaves commit/rollback to it.
    """

    json_columns: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        pool: Any,
        table_name: str,
        id_column: str,
    ) -> None:
        self.pool = pool
        self.table_name = table_name
        self.id_column = id_column

    # ── helpers ──────────────────────────────────────────────────────

    @contextmanager
    def _connection(self, commit: bool = False) -> Iterator[Any]:
        """Yield the unit-of-work connection, or a pooled one we own."""
        active = get_active_connection()
        if active is not None:
            yield active
            return

        conn = self.pool.acquire()
        try:
            yield conn
            if commit:
                conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _log_query(sql: str, elapsed_ms: float) -> None:
        """Log query timing; warn if above slow-query threshold."""
        if elapsed_ms > SLOW_QUERY_THRESHOLD_MS:
            logger.warning(
                "SLOW QUERY (%.1fms): %s",
                elapsed_ms,
                sql[:200],
            )
        else:
            logger.debug("Query (%.1fms): %s", elapsed_ms, sql[:200])

    @staticmethod
    def _generate_id() -> str:
        """Generate a new UUID string."""
        return uuid.uuid4().hex

    def _convert_row(self, row: dict[str, Any]) -> dict[str, Any]:
        """Convert Oracle-specific types and decode JSON columns."""
        converted: dict[str, Any] = {}
        for k, v in row.items():
            if isinstance(v, oracledb.LOB):
                v = v.read()
            if k in self.json_columns and isinstance(v, str):
                v = json.loads(v)
            converted[k] = v
        return converted

    def _encode(self, data: dict[str, Any]) -> dict[str, Any]:
        """Serialize JSON columns for binding."""
        return {
            k: json.dumps(v, default=str) if k in self.json_columns and v is not None else v
            for k, v in data.items()
        }

    def _build_where(
        self,
        filters: dict[str, Any],
        prefix: str = "w_",
    ) -> tuple[str, dict[str, Any]]:
        """Build a WHERE clause and bind‑param dict from *filters*.

        Returns ("WHERE col1 = :w_col1 AND col2 = :w_col2", {"w_col1": v1, …}).
        """
        if not filters:
            return "", {}
        clauses: list[str] = []
        params: dict[str, Any] = {}
        for col, val in filters.items():
            bind_name = f"{prefix}{col}"
            clauses.append(f"{col} = :{bind_name}")
            params[bind_name] = val
        return "WHERE " + " AND ".join(clauses), params

    def _select(self, sql: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        with self._connection() as conn, conn.cursor() as cur:
            start = time.perf_counter()
            cur.execute(sql, params)
            columns = [col[0].lower() for col in (cur.description or [])]
            rows = [
                self._convert_row(dict(zip(columns, row, strict=True)))
                for row in cur.fetchall()
            ]
            self._log_query(sql, (time.perf_counter() - start) * 1000)
            return rows

    def _execute(self, sql: str, params: dict[str, Any]) -> int:
        with self._connection(commit=True) as conn, conn.cursor() as cur:
            start = time.perf_counter()
            cur.execute(sql, params)
            self._log_query(sql, (time.perf_counter() - start) * 1000)
            return int(cur.rowcount)

    # ── read ─────────────────────────────────────────────────────────

    def find_by_id(self, entity_id: str) -> dict[str, Any] | None:
        """Return a single row by primary key, or ``None``."""
        sql = f"SELECT * FROM {self.table_name} WHERE {self.id_column} = :id"
        rows = self._select(sql, {"id": entity_id})
        return rows[0] if rows else None

    def find_all(
        self,
        limit: int = 20,
        offset: int = 0,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        """Return paginated rows, optionally filtered and ordered."""
        where_clause, params = self._build_where(filters or {})
        order_clause = f"ORDER BY {order_by}" if order_by else ""
        sql = (
            f"SELECT * FROM {self.table_name} {where_clause} {order_clause} "
            f"OFFSET :off ROWS FETCH NEXT :lim ROWS ONLY"
        )
        params["off"] = offset
        params["lim"] = limit
        return self._select(sql, params)

    def find_where(
        self,
        filters: dict[str, Any],
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        """Return every row matching all *filters* (no pagination)."""
        where_clause, params = self._build_where(filters)
        order_clause = f"ORDER BY {order_by}" if order_by else ""
        sql = f"SELECT * FROM {self.table_name} {where_clause} {order_clause}"
        return self._select(sql, params)

    def find_by_field(
        self,
        field: str,
        value: Any,
    ) -> list[dict[str, Any]]:
        """Return all rows matching a single field value."""
        return self.find_where({field: value})

    # ── write ────────────────────────────────────────────────────────

    def create(
        self,
        data: dict[str, Any],
        new_id: str | None = None,
    ) -> str:
        """Insert a new row and return its ID.

        The ID is either supplied via *new_id* or auto‑generated.
        """
        if new_id is None:
            new_id = self._generate_id()

        all_data = self._encode({self.id_column: new_id, **data})
        columns = ", ".join(all_data.keys())
        placeholders = ", ".join(f":{k}" for k in all_data)
        sql = f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders})"
        self._execute(sql, all_data)
        return new_id

    def update(
        self,
        entity_id: str,
        data: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> int:
        """Update a row by primary key. Returns rows affected.

        ``expected`` adds compare-and-set guards, e.g. ``{"status": "pending"}``
        updates nothing unless the row is still pending.
        """
        if not data:
            raise ValueError("No data provided for update")

        encoded = self._encode(data)
        set_clause = ", ".join(f"{k} = :s_{k}" for k in encoded)
        params: dict[str, Any] = {f"s_{k}": v for k, v in encoded.items()}
        params["id"] = entity_id

        sql = f"UPDATE {self.table_name} SET {set_clause} WHERE {self.id_column} = :id"
        for col, val in (expected or {}).items():
            sql += f" AND {col} = :e_{col}"
            params[f"e_{col}"] = val
        return self._execute(sql, params)
