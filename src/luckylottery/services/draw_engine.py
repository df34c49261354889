"""Draw engine — CSPRNG winning numbers, ticket scoring and prize payout.

Uses Python's ``secrets`` module for the winning combination. A draw runs
under the exclusive lock and one unit of work: every ticket settlement,
winning transaction, winner record and the draw result itself are committed
together or not at all.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from luckylottery.core.constants import (
    NUMBER_MAX,
    NUMBER_MIN,
    NUMBERS_PER_TICKET,
    PRIZE_TABLE,
    STATUS_COMPLETED,
    TICKET_LOST,
    TICKET_WON,
    TX_WINNING,
)
from luckylottery.services.ledger import LedgerService, format_rupees
from luckylottery.services.tickets import TicketService, validate_numbers

logger = logging.getLogger(__name__)


def generate_winning_numbers() -> list[int]:
    """Five distinct numbers drawn uniformly from the pool, sorted.

    A repeated draw is thrown away and drawn again.
    """
    span = NUMBER_MAX - NUMBER_MIN + 1
    picked: set[int] = set()
    while len(picked) < NUMBERS_PER_TICKET:
        picked.add(NUMBER_MIN + secrets.randbelow(span))
    return sorted(picked)


def count_matches(ticket_numbers: Iterable[int], winning_numbers: Iterable[int]) -> int:
    return len(set(ticket_numbers) & set(winning_numbers))


def prize_for(matched: int) -> Decimal:
    """Payout for a match count; zero when the count wins nothing."""
    return PRIZE_TABLE.get(matched, Decimal("0"))


class DrawEngine:
    """Runs the daily draw over every active ticket."""

    def __init__(
        self,
        ticket_service: TicketService,
        ledger: LedgerService,
        draw_result_repo: Any,
        winner_repo: Any,
    ) -> None:
        self.tickets = ticket_service
        self.ledger = ledger
        self.draw_result_repo = draw_result_repo
        self.winner_repo = winner_repo
        self.locks = ledger.locks
        self.atomic = ledger.atomic

    def run_daily_draw(
        self,
        winning_numbers: Iterable[int] | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Draw the winning numbers and settle every active ticket.

        Steps:
          1. Generate (or validate the injected) winning numbers
          2. Score each active ticket against them
          3. Settle winners as won, credit a winning transaction, add a winner record
          4. Settle everything else as lost
          5. Persist the draw result with the per-tier tally

        Tickets that are not active when the draw starts are never rescored.
        """
        if winning_numbers is None:
            winning = generate_winning_numbers()
        else:
            winning = validate_numbers(winning_numbers)
        if now is None:
            now = datetime.now(tz=UTC)

        draw_id = uuid.uuid4().hex
        tally = {matched: 0 for matched in sorted(PRIZE_TABLE, reverse=True)}

        with self.locks.exclusive(), self.atomic():
            active = self.tickets.active_tickets()
            users: dict[str, dict[str, Any]] = {}

            for ticket in active:
                matched = count_matches(ticket["numbers"], winning)
                prize = prize_for(matched)
                if prize <= 0:
                    self.tickets.settle(
                        ticket["ticket_id"],
                        status=TICKET_LOST,
                        matched_numbers=matched,
                        draw_id=draw_id,
                        now=now,
                    )
                    continue

                tally[matched] += 1
                user_id = ticket["user_id"]
                self.tickets.settle(
                    ticket["ticket_id"],
                    status=TICKET_WON,
                    matched_numbers=matched,
                    prize=prize,
                    draw_id=draw_id,
                    now=now,
                )
                self.ledger.record(
                    user_id=user_id,
                    transaction_type=TX_WINNING,
                    amount=prize,
                    status=STATUS_COMPLETED,
                    description=f"Won {format_rupees(prize)} with {matched} matching numbers",
                    details={"ticket_id": ticket["ticket_id"], "draw_id": draw_id},
                    now=now,
                )

                if user_id not in users:
                    users[user_id] = self.ledger.find_user(user_id) or {}
                self.winner_repo.create(
                    data={
                        "draw_id": draw_id,
                        "user_id": user_id,
                        "user_name": users[user_id].get("name", ""),
                        "ticket_id": ticket["ticket_id"],
                        "numbers": ticket["numbers"],
                        "matched_numbers": matched,
                        "prize": prize,
                        "draw_date": now,
                    },
                    new_id=uuid.uuid4().hex,
                )

            tiers = [
                {"match_count": matched, "count": count, "prize": str(PRIZE_TABLE[matched])}
                for matched, count in tally.items()
            ]
            data: dict[str, Any] = {
                "numbers": winning,
                "draw_date": now,
                "tiers": tiers,
                "total_tickets": len(active),
            }
            self.draw_result_repo.create(data=data, new_id=draw_id)

        logger.info(
            "Draw %s: winning numbers %s, %d tickets, %d winners",
            draw_id,
            winning,
            len(active),
            sum(tally.values()),
        )
        return {"draw_id": draw_id, **data}

    # ── Queries ─────────────────────────────────────────────────────

    def list_results(self, limit: int = 10) -> list[dict[str, Any]]:
        result: list[dict[str, Any]] = self.draw_result_repo.find_recent(limit=limit)
        return result

    def latest_result(self) -> dict[str, Any] | None:
        result: dict[str, Any] | None = self.draw_result_repo.find_latest()
        return result

    def recent_winners(self, limit: int = 20) -> list[dict[str, Any]]:
        result: list[dict[str, Any]] = self.winner_repo.find_recent(limit=limit)
        return result

    def winners_for_draw(self, draw_id: str) -> list[dict[str, Any]]:
        result: list[dict[str, Any]] = self.winner_repo.find_by_draw(draw_id)
        return result
