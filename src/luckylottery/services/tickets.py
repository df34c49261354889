"""Ticket service — number selection, ticket purchase and settlement.

Purchases are charged through the ledger: the ``ticket-purchase``
transaction, the balance debit and the new ticket are written in one unit of
work under the buyer's lock, and nothing is written when any precondition
fails.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

from luckylottery.core.constants import (
    DEFAULT_TICKET_PRICE,
    NUMBER_MAX,
    NUMBER_MIN,
    NUMBERS_PER_TICKET,
    SETTLED_TICKET_STATUSES,
    STATUS_COMPLETED,
    TICKET_ACTIVE,
    TICKET_LOST,
    TICKET_STATUSES,
    TICKET_WON,
    TX_TICKET_PURCHASE,
)
from luckylottery.core.errors import (
    InsufficientBalance,
    InvalidTransition,
    NotFound,
    Unauthenticated,
    ValidationError,
)
from luckylottery.services.ledger import LedgerService, format_rupees, to_money

logger = logging.getLogger(__name__)


def validate_number(n: Any) -> int:
    """A single pick must be an integer in the number pool."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise ValidationError(f"Numbers must be integers, got {n!r}")
    if not NUMBER_MIN <= n <= NUMBER_MAX:
        raise ValidationError(f"Numbers must be between {NUMBER_MIN} and {NUMBER_MAX}")
    return n


def validate_numbers(numbers: Iterable[Any]) -> list[int]:
    """Exactly five distinct numbers from the pool, returned sorted."""
    picks = [validate_number(n) for n in numbers]
    if len(picks) != NUMBERS_PER_TICKET or len(set(picks)) != NUMBERS_PER_TICKET:
        raise ValidationError(f"Please select exactly {NUMBERS_PER_TICKET} distinct numbers")
    return sorted(picks)


def next_draw_date(now: datetime, draw_hour_utc: int) -> datetime:
    """The draw a ticket bought at *now* takes part in.

    Today's draw while its hour has not come yet, otherwise tomorrow's.
    """
    now = now.astimezone(UTC)
    slot = now.replace(hour=draw_hour_utc, minute=0, second=0, microsecond=0)
    if now >= slot:
        slot += timedelta(days=1)
    return slot


class TicketService:
    """Manages number selection, purchases and ticket settlement."""

    def __init__(
        self,
        ticket_repo: Any,
        ledger: LedgerService,
        ticket_price: Decimal = DEFAULT_TICKET_PRICE,
        draw_hour_utc: int = 12,
    ) -> None:
        self.ticket_repo = ticket_repo
        self.ledger = ledger
        self.ticket_price = to_money(ticket_price)
        self.draw_hour_utc = draw_hour_utc
        self.locks = ledger.locks
        self.atomic = ledger.atomic
        # In-progress picks, per user, in the order they were tapped
        self._selections: dict[str, list[int]] = {}

    # ── Selection ───────────────────────────────────────────────────

    def toggle_number(self, user_id: str, n: Any) -> list[int]:
        """Add or remove *n* from the user's pick.

        Adding a sixth number is ignored; the selection is capped, not an error.
        """
        self._require_caller(user_id)
        number = validate_number(n)
        with self.locks.user(user_id):
            selection = self._selections.setdefault(user_id, [])
            if number in selection:
                selection.remove(number)
            elif len(selection) < NUMBERS_PER_TICKET:
                selection.append(number)
            return list(selection)

    def clear_selection(self, user_id: str) -> list[int]:
        self._require_caller(user_id)
        with self.locks.user(user_id):
            self._selections.pop(user_id, None)
        return []

    def get_selection(self, user_id: str) -> list[int]:
        self._require_caller(user_id)
        with self.locks.user(user_id):
            return list(self._selections.get(user_id, []))

    # ── Purchase ────────────────────────────────────────────────────

    def purchase(self, user_id: str, now: datetime | None = None) -> dict[str, Any]:
        """Buy a ticket with the current selection and clear it.

        Fails with ``Unauthenticated``, ``ValidationError`` (not exactly five
        numbers selected) or ``InsufficientBalance`` and then changes nothing,
        the selection included.
        """
        self._require_caller(user_id)
        with self.locks.user(user_id):
            selection = list(self._selections.get(user_id, []))
            ticket = self._buy(user_id, selection, now)
            self._selections.pop(user_id, None)
        return ticket

    def purchase_numbers(
        self,
        user_id: str,
        numbers: Iterable[Any],
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Buy a ticket for an explicit pick, leaving any saved selection alone."""
        self._require_caller(user_id)
        with self.locks.user(user_id):
            return self._buy(user_id, list(numbers), now)

    def _buy(self, user_id: str, numbers: list[Any], now: datetime | None) -> dict[str, Any]:
        picks = validate_numbers(numbers)
        if now is None:
            now = datetime.now(tz=UTC)

        with self.atomic():
            if self.ledger.find_user(user_id) is None:
                raise Unauthenticated("Please log in to buy tickets")

            balance = self.ledger.get_balance(user_id)
            if balance < self.ticket_price:
                raise InsufficientBalance(
                    f"Insufficient balance. Need {self.ticket_price}, have {balance}"
                )

            purchase = self.ledger.record(
                user_id=user_id,
                transaction_type=TX_TICKET_PURCHASE,
                amount=self.ticket_price,
                status=STATUS_COMPLETED,
                description=(
                    "Purchase of lottery ticket with numbers "
                    + ", ".join(str(n) for n in picks)
                ),
                details={"numbers": picks},
                now=now,
            )

            ticket_id = uuid.uuid4().hex
            data: dict[str, Any] = {
                "user_id": user_id,
                "numbers": picks,
                "purchase_date": now,
                "draw_date": next_draw_date(now, self.draw_hour_utc),
                "status": TICKET_ACTIVE,
                "purchase_transaction_id": purchase["transaction_id"],
                "price": self.ticket_price,
            }
            self.ticket_repo.create(data=data, new_id=ticket_id)

        logger.info(
            "User %s bought ticket %s %s for %s",
            user_id,
            ticket_id,
            picks,
            format_rupees(self.ticket_price),
        )
        return {"ticket_id": ticket_id, **data}

    # ── Queries ─────────────────────────────────────────────────────

    def list_tickets(self, user_id: str, status: str | None = None) -> list[dict[str, Any]]:
        """A user's tickets, most recent purchase first."""
        if status is not None and status not in TICKET_STATUSES:
            raise ValidationError(f"Invalid ticket status filter: {status}")
        result: list[dict[str, Any]] = self.ticket_repo.find_by_user(user_id, status=status)
        return result

    def list_results(self, user_id: str) -> list[dict[str, Any]]:
        """A user's tickets that have been through a draw."""
        return [
            t
            for t in self.ticket_repo.find_by_user(user_id)
            if t.get("status") in SETTLED_TICKET_STATUSES
        ]

    def get_ticket(self, ticket_id: str) -> dict[str, Any]:
        ticket = self.ticket_repo.find_by_id(ticket_id)
        if ticket is None:
            raise NotFound("Ticket not found")
        return dict(ticket)

    def active_tickets(self) -> list[dict[str, Any]]:
        """Tickets waiting for the next draw."""
        result: list[dict[str, Any]] = self.ticket_repo.find_active()
        return result

    # ── Settlement ──────────────────────────────────────────────────

    def settle(
        self,
        ticket_id: str,
        *,
        status: str,
        matched_numbers: int,
        prize: Decimal | None = None,
        draw_id: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Record a ticket's draw outcome. A ticket is settled exactly once."""
        if status not in (TICKET_WON, TICKET_LOST):
            raise ValidationError(f"Tickets settle as won or lost, not '{status}'")
        if not 0 <= matched_numbers <= NUMBERS_PER_TICKET:
            raise ValidationError(f"Invalid matched count: {matched_numbers}")
        if status == TICKET_WON and (prize is None or prize <= 0):
            raise ValidationError("A winning ticket needs a positive prize")
        if now is None:
            now = datetime.now(tz=UTC)

        ticket = self.get_ticket(ticket_id)
        with self.locks.user(ticket["user_id"]):
            if ticket["status"] != TICKET_ACTIVE:
                raise InvalidTransition(
                    f"Ticket {ticket_id} is already {ticket['status']}"
                )
            data: dict[str, Any] = {
                "status": status,
                "matched_numbers": matched_numbers,
                "draw_id": draw_id,
                "settled_at": now,
            }
            if status == TICKET_WON:
                data["prize"] = to_money(prize)

            if self.ticket_repo.settle(ticket_id, data) == 0:
                raise InvalidTransition(f"Ticket {ticket_id} was settled by another draw")

        return {**ticket, **data}

    # ── Internal ────────────────────────────────────────────────────

    @staticmethod
    def _require_caller(user_id: str | None) -> None:
        if not user_id:
            raise Unauthenticated("Please log in to buy tickets")
