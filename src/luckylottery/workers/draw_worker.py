"""Draw worker — runs the daily draw once its scheduled hour has passed.

Meant to be invoked periodically (cron, every few minutes). A run is skipped
when the draw hour has not arrived yet or today's draw is already recorded,
so repeated invocations settle tickets only once per day.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)


class DrawWorkerResult:
    """Result of a draw worker run."""

    def __init__(self) -> None:
        self.draw_id: str | None = None
        self.total_tickets = 0
        self.skipped: str | None = None
        self.errors: list[str] = []

    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "draw_id": self.draw_id,
            "total_tickets": self.total_tickets,
            "skipped": self.skipped,
            "errors": self.errors,
            "success": self.success,
        }


def _as_utc(value: datetime) -> datetime:
    # Oracle TIMESTAMP columns come back naive
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


class DrawWorker:
    """Scheduled trigger for :meth:`DrawEngine.run_daily_draw`."""

    def __init__(self, draw_engine: Any, draw_hour_utc: int = 12) -> None:
        self.draw_engine = draw_engine
        self.draw_hour_utc = draw_hour_utc

    def run(self, now: datetime | None = None, force: bool = False) -> DrawWorkerResult:
        """Execute one cycle; ``force`` ignores the schedule."""
        if now is None:
            now = datetime.now(tz=UTC)
        result = DrawWorkerResult()

        if not force:
            slot = _as_utc(now).replace(
                hour=self.draw_hour_utc, minute=0, second=0, microsecond=0
            )
            if _as_utc(now) < slot:
                result.skipped = f"draw hour {self.draw_hour_utc}:00 UTC not reached"
                return result
            latest = self.draw_engine.latest_result()
            if latest is not None and _as_utc(latest["draw_date"]) >= slot:
                result.skipped = f"already drawn today ({latest['draw_id']})"
                return result

        try:
            draw = self.draw_engine.run_daily_draw(now=now)
        except Exception as e:
            logger.exception("Daily draw failed")
            result.errors.append(f"Daily draw failed: {e}")
            return result

        result.draw_id = draw["draw_id"]
        result.total_tickets = draw["total_tickets"]
        return result
