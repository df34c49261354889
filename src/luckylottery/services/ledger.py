"""Ledger service — transaction log and the cached balance derived from it.

A user's balance always equals the signed sum of their *completed*
transactions: deposits and winnings add, withdrawals and ticket purchases
subtract. The balance column on ``users`` is a cache of that sum. It is
adjusted by exactly one delta in the same unit of work as every write that
creates a completed transaction or completes a pending one, and is only
recomputed from scratch by the audit/repair path.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from luckylottery.core.constants import (
    BALANCE_SIGNS,
    MONEY_QUANTUM,
    STATUS_COMPLETED,
    STATUS_PENDING,
    TRANSACTION_STATUSES,
    TRANSACTION_TYPES,
    TX_DEPOSIT,
    TX_WITHDRAW,
    VALID_STATUS_TRANSITIONS,
)
from luckylottery.core.errors import (
    InsufficientBalance,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from luckylottery.core.locks import LockRegistry

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


# ── Money helpers ───────────────────────────────────────────────────


def to_money(value: Any) -> Decimal:
    """Coerce *value* to a Decimal with paisa precision.

    Rejects non-numbers, infinities and more than two decimal places.
    """
    try:
        amount = Decimal(str(value))
        quantized = amount.quantize(MONEY_QUANTUM) if amount.is_finite() else None
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValidationError(f"Invalid amount: {value!r}") from e
    if quantized is None:
        raise ValidationError(f"Invalid amount: {value!r}")
    if amount != quantized:
        raise ValidationError("Amount must have at most 2 decimal places")
    return quantized


def format_rupees(amount: Decimal) -> str:
    """Render an amount with Indian digit grouping, e.g. ``₹1,00,00,000``."""
    whole, frac = f"{Decimal(amount).quantize(MONEY_QUANTUM):f}".split(".")
    sign = "-" if whole.startswith("-") else ""
    whole = whole.lstrip("-")
    head, tail = whole[:-3], whole[-3:]
    groups: list[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    body = ",".join([*groups, tail])
    text = f"₹{sign}{body}"
    return text if frac == "00" else f"{text}.{frac}"


def signed_delta(transaction_type: str, amount: Decimal) -> Decimal:
    """Balance effect of completing a transaction of this type."""
    return BALANCE_SIGNS[transaction_type] * to_money(amount)


def reversal_delta(transaction_type: str, amount: Decimal) -> Decimal:
    """Balance effect of undoing a completed transaction.

    Not reachable through :meth:`LedgerService.set_status`, where completed is
    terminal. A credit (deposit, winning) is taken back and a debit
    (withdrawal, ticket purchase) is refunded.
    """
    return -signed_delta(transaction_type, amount)


class LedgerService:
    """Owns transactions and each user's cached balance."""

    def __init__(
        self,
        transaction_repo: Any,
        user_repo: Any,
        locks: LockRegistry | None = None,
        atomic: Callable[[], AbstractContextManager[Any]] | None = None,
    ) -> None:
        self.transaction_repo = transaction_repo
        self.user_repo = user_repo
        self.locks = locks or LockRegistry()
        self.atomic = atomic or nullcontext

    # ── Writes ──────────────────────────────────────────────────────

    def record(
        self,
        *,
        user_id: str,
        transaction_type: str,
        amount: Any,
        status: str,
        description: str = "",
        details: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Append a transaction; a completed one moves the balance immediately."""
        if transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Invalid transaction type: {transaction_type}")
        if status not in (STATUS_PENDING, STATUS_COMPLETED):
            raise ValidationError(f"Transactions cannot be created as '{status}'")
        money = to_money(amount)
        if money <= ZERO:
            raise ValidationError("Amount must be greater than zero")
        if now is None:
            now = datetime.now(tz=UTC)

        with self.locks.user(user_id), self.atomic():
            user = self._lock_user(user_id)

            delta = ZERO
            if status == STATUS_COMPLETED:
                delta = signed_delta(transaction_type, money)
                self._check_funds(user, delta)

            transaction_id = uuid.uuid4().hex
            data: dict[str, Any] = {
                "user_id": user_id,
                "transaction_type": transaction_type,
                "amount": money,
                "status": status,
                "description": description,
                "details": details or None,
                "created_at": now,
            }
            self.transaction_repo.create(data=data, new_id=transaction_id)
            if delta:
                self.user_repo.apply_balance_delta(user_id, delta)

        logger.info(
            "Recorded %s %s of %s for user %s (%s)",
            status,
            transaction_type,
            money,
            user_id,
            transaction_id,
        )
        return {"transaction_id": transaction_id, **data}

    def set_status(
        self,
        transaction_id: str,
        new_status: str,
        expected_type: str | None = None,
    ) -> dict[str, Any]:
        """Resolve a pending transaction to completed or rejected.

        Completing applies the transaction's signed delta to the balance in
        the same unit of work as the status write. Rejecting a pending
        transaction has no balance effect. Any other transition, including
        repeating a terminal status, raises ``InvalidTransition``.
        """
        if new_status not in TRANSACTION_STATUSES:
            raise ValidationError(f"Invalid status: {new_status}")

        found = self.transaction_repo.find_by_id(transaction_id)
        if found is None:
            raise NotFound("Transaction not found")
        user_id = found["user_id"]

        with self.locks.user(user_id), self.atomic():
            user = self._lock_user(user_id)
            # Re-read under the user's lock
            transaction = self.transaction_repo.find_by_id(transaction_id)
            if transaction is None:
                raise NotFound("Transaction not found")

            transaction_type = transaction["transaction_type"]
            if expected_type is not None and transaction_type != expected_type:
                raise ValidationError(
                    f"Transaction {transaction_id} is a {transaction_type}, not a {expected_type}"
                )

            current = transaction["status"]
            allowed = VALID_STATUS_TRANSITIONS.get(current, [])
            if new_status not in allowed:
                raise InvalidTransition(
                    f"Cannot transition transaction from '{current}' to '{new_status}'"
                )

            delta = ZERO
            if new_status == STATUS_COMPLETED:
                delta = signed_delta(transaction_type, transaction["amount"])
                self._check_funds(user, delta)

            affected = self.transaction_repo.transition_status(transaction_id, current, new_status)
            if affected == 0:
                raise InvalidTransition("Transaction was resolved by another request")
            if delta:
                self.user_repo.apply_balance_delta(user_id, delta)

        logger.info(
            "Transaction %s (%s) %s -> %s for user %s",
            transaction_id,
            transaction_type,
            current,
            new_status,
            user_id,
        )
        return {**transaction, "status": new_status}

    # ── Inbound user requests ───────────────────────────────────────

    def request_deposit(
        self,
        *,
        user_id: str,
        amount: Any,
        transaction_ref: str,
        account_name: str,
        screenshot: str | None = None,
    ) -> dict[str, Any]:
        """File a UPI deposit for admin verification (pending, no balance effect)."""
        if len(transaction_ref.strip()) < 4:
            raise ValidationError("Transaction ID must be at least 4 characters")
        if len(account_name.strip()) < 2:
            raise ValidationError("Name must be at least 2 characters")
        money = to_money(amount)

        details: dict[str, Any] = {
            "transaction_ref": transaction_ref.strip(),
            "account_name": account_name.strip(),
        }
        if screenshot:
            details["screenshot"] = screenshot
        return self.record(
            user_id=user_id,
            transaction_type=TX_DEPOSIT,
            amount=money,
            status=STATUS_PENDING,
            description=f"Deposit of {format_rupees(money)}",
            details=details,
        )

    def request_withdrawal(
        self,
        *,
        user_id: str,
        amount: Any,
        upi_id: str,
        account_name: str,
        mobile: str,
    ) -> dict[str, Any]:
        """File a payout request; refused up front if the balance cannot cover it.

        The balance is only debited when an admin approves the request, and is
        checked again at that point.
        """
        if len(upi_id.strip()) < 5:
            raise ValidationError("Please enter a valid UPI ID")
        if len(account_name.strip()) < 2:
            raise ValidationError("Name must be at least 2 characters")
        if not (len(mobile) == 10 and mobile.isdigit()):
            raise ValidationError("Mobile number must be 10 digits")
        money = to_money(amount)

        with self.locks.user(user_id):
            balance = self.get_balance(user_id)
            if balance < money:
                raise InsufficientBalance(
                    f"Insufficient balance. Requested {money}, available {balance}"
                )
            return self.record(
                user_id=user_id,
                transaction_type=TX_WITHDRAW,
                amount=money,
                status=STATUS_PENDING,
                description=f"Withdrawal of {format_rupees(money)}",
                details={
                    "upi_id": upi_id.strip(),
                    "account_name": account_name.strip(),
                    "mobile": mobile,
                },
            )

    # ── Queries ─────────────────────────────────────────────────────

    def list_transactions(
        self,
        user_id: str,
        status: str | None = None,
        transaction_type: str | None = None,
    ) -> list[dict[str, Any]]:
        """A user's transactions, most recent first."""
        if status is not None and status not in TRANSACTION_STATUSES:
            raise ValidationError(f"Invalid status filter: {status}")
        if transaction_type is not None and transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Invalid transaction type filter: {transaction_type}")
        result: list[dict[str, Any]] = self.transaction_repo.find_by_user(
            user_id, status=status, transaction_type=transaction_type
        )
        return result

    def get_transaction(self, transaction_id: str) -> dict[str, Any]:
        transaction = self.transaction_repo.find_by_id(transaction_id)
        if transaction is None:
            raise NotFound("Transaction not found")
        return dict(transaction)

    def pending_deposits(self) -> list[dict[str, Any]]:
        """Deposits awaiting admin verification, most recent first."""
        result: list[dict[str, Any]] = self.transaction_repo.find_by_status(
            STATUS_PENDING, transaction_type=TX_DEPOSIT
        )
        return result

    def pending_withdrawals(self) -> list[dict[str, Any]]:
        """Withdrawals awaiting admin payout, most recent first."""
        result: list[dict[str, Any]] = self.transaction_repo.find_by_status(
            STATUS_PENDING, transaction_type=TX_WITHDRAW
        )
        return result

    def find_user(self, user_id: str) -> dict[str, Any] | None:
        user: dict[str, Any] | None = self.user_repo.find_by_id(user_id)
        return user

    def get_balance(self, user_id: str) -> Decimal:
        """The cached balance."""
        user = self._require_user(user_id)
        return to_money(user.get("balance") or 0)

    # ── Audit / recovery ────────────────────────────────────────────

    def compute_balance(self, user_id: str) -> Decimal:
        """Recompute the balance from the completed transactions."""
        completed = self.transaction_repo.find_by_user(user_id, status=STATUS_COMPLETED)
        return sum(
            (signed_delta(t["transaction_type"], t["amount"]) for t in completed),
            start=ZERO,
        )

    def audit_balance(self, user_id: str) -> dict[str, Any]:
        """Compare the cached balance with the ledger sum."""
        with self.locks.user(user_id):
            cached = self.get_balance(user_id)
            computed = self.compute_balance(user_id)
        consistent = cached == computed
        if not consistent:
            logger.error(
                "Balance drift for user %s: cached=%s ledger=%s",
                user_id,
                cached,
                computed,
            )
        return {
            "user_id": user_id,
            "cached_balance": cached,
            "ledger_balance": computed,
            "difference": cached - computed,
            "consistent": consistent,
        }

    def repair_balance(self, user_id: str) -> dict[str, Any]:
        """Overwrite the cached balance with the ledger sum (recovery only)."""
        with self.locks.user(user_id), self.atomic():
            before = to_money(self._lock_user(user_id).get("balance") or 0)
            computed = self.compute_balance(user_id)
            if before != computed:
                self.user_repo.set_balance(user_id, computed)
                logger.warning(
                    "Repaired balance for user %s: %s -> %s", user_id, before, computed
                )
        return {"user_id": user_id, "previous_balance": before, "balance": computed}

    # ── Internal ────────────────────────────────────────────────────

    def _require_user(self, user_id: str) -> dict[str, Any]:
        user: dict[str, Any] | None = self.user_repo.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def _lock_user(self, user_id: str) -> dict[str, Any]:
        """Fetch the user row locked for the rest of the unit of work."""
        user: dict[str, Any] | None = self.user_repo.lock_for_update(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    @staticmethod
    def _check_funds(user: dict[str, Any], delta: Decimal) -> None:
        """Refuse a debit that would take the balance below zero."""
        if delta >= ZERO:
            return
        balance = to_money(user.get("balance") or 0)
        if balance + delta < ZERO:
            raise InsufficientBalance(
                f"Insufficient balance. Need {-delta}, have {balance}"
            )
