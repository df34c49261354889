"""Tests for the ledger — transaction recording, status transitions and balances."""

from __future__ import annotations

from decimal import Decimal
from functools import partial
from unittest.mock import patch

import pytest

from luckylottery.core.constants import (
    STATUS_COMPLETED,
    STATUS_PENDING,
    STATUS_REJECTED,
    TX_DEPOSIT,
    TX_TICKET_PURCHASE,
    TX_WINNING,
    TX_WITHDRAW,
)
from luckylottery.core.database import atomic
from luckylottery.core.errors import (
    InsufficientBalance,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from luckylottery.repositories.transaction_repository import TransactionRepository
from luckylottery.repositories.user_repository import UserRepository
from luckylottery.services.ledger import (
    LedgerService,
    format_rupees,
    reversal_delta,
    signed_delta,
    to_money,
)
from tests.conftest import MockCursor, MockPool, set_mock_query_result

# ── Money helpers ───────────────────────────────────────────────────


class TestToMoney:
    def test_quantizes_integers(self) -> None:
        assert to_money(10) == Decimal("10.00")

    def test_accepts_strings(self) -> None:
        assert to_money("99.5") == Decimal("99.50")

    @pytest.mark.parametrize("value", ["abc", None, "NaN", "Infinity", "1e999999999"])
    def test_rejects_non_numbers(self, value: object) -> None:
        with pytest.raises(ValidationError):
            to_money(value)

    def test_rejects_sub_paisa_precision(self) -> None:
        with pytest.raises(ValidationError, match="2 decimal places"):
            to_money("1.005")


class TestFormatRupees:
    @pytest.mark.parametrize(
        ("amount", "expected"),
        [
            (Decimal("100"), "₹100"),
            (Decimal("500.00"), "₹500"),
            (Decimal("1000"), "₹1,000"),
            (Decimal("600000"), "₹6,00,000"),
            (Decimal("1000000"), "₹10,00,000"),
            (Decimal("10000000"), "₹1,00,00,000"),
            (Decimal("1234.50"), "₹1,234.50"),
        ],
    )
    def test_indian_grouping(self, amount: Decimal, expected: str) -> None:
        assert format_rupees(amount) == expected


class TestSignedDelta:
    def test_credits_are_positive(self) -> None:
        assert signed_delta(TX_DEPOSIT, Decimal("5")) == Decimal("5.00")
        assert signed_delta(TX_WINNING, Decimal("5")) == Decimal("5.00")

    def test_debits_are_negative(self) -> None:
        assert signed_delta(TX_WITHDRAW, Decimal("5")) == Decimal("-5.00")
        assert signed_delta(TX_TICKET_PURCHASE, Decimal("5")) == Decimal("-5.00")

    def test_reversal_is_the_negation(self) -> None:
        for tx_type in (TX_DEPOSIT, TX_WINNING, TX_WITHDRAW, TX_TICKET_PURCHASE):
            assert reversal_delta(tx_type, Decimal("7")) == -signed_delta(tx_type, Decimal("7"))


# ── record ──────────────────────────────────────────────────────────


class TestRecord:
    def test_pending_deposit_leaves_balance(self, ledger, make_user) -> None:
        user = make_user()
        tx = ledger.record(
            user_id=user["user_id"],
            transaction_type=TX_DEPOSIT,
            amount=500,
            status=STATUS_PENDING,
        )
        assert tx["status"] == STATUS_PENDING
        assert tx["amount"] == Decimal("500.00")
        assert tx["transaction_id"]
        assert tx["created_at"] is not None
        assert ledger.get_balance(user["user_id"]) == Decimal("0.00")

    def test_completed_credit_moves_balance(self, ledger, make_user) -> None:
        user = make_user()
        ledger.record(
            user_id=user["user_id"],
            transaction_type=TX_WINNING,
            amount=100,
            status=STATUS_COMPLETED,
        )
        assert ledger.get_balance(user["user_id"]) == Decimal("100.00")

    def test_completed_debit_moves_balance(self, ledger, make_user) -> None:
        user = make_user(balance=50)
        ledger.record(
            user_id=user["user_id"],
            transaction_type=TX_TICKET_PURCHASE,
            amount=10,
            status=STATUS_COMPLETED,
        )
        assert ledger.get_balance(user["user_id"]) == Decimal("40.00")

    def test_overdraw_writes_nothing(self, db, ledger, make_user) -> None:
        user = make_user(balance=5)
        before = len(db.transactions.all())
        with pytest.raises(InsufficientBalance):
            ledger.record(
                user_id=user["user_id"],
                transaction_type=TX_TICKET_PURCHASE,
                amount=10,
                status=STATUS_COMPLETED,
            )
        assert len(db.transactions.all()) == before
        assert ledger.get_balance(user["user_id"]) == Decimal("5.00")

    @pytest.mark.parametrize("amount", [0, -1, "-0.01"])
    def test_amount_must_be_positive(self, ledger, make_user, amount: object) -> None:
        user = make_user()
        with pytest.raises(ValidationError, match="greater than zero"):
            ledger.record(
                user_id=user["user_id"],
                transaction_type=TX_DEPOSIT,
                amount=amount,
                status=STATUS_PENDING,
            )

    def test_unknown_type(self, ledger, make_user) -> None:
        user = make_user()
        with pytest.raises(ValidationError, match="transaction type"):
            ledger.record(
                user_id=user["user_id"],
                transaction_type="bonus",
                amount=1,
                status=STATUS_PENDING,
            )

    def test_cannot_create_rejected(self, ledger, make_user) -> None:
        user = make_user()
        with pytest.raises(ValidationError):
            ledger.record(
                user_id=user["user_id"],
                transaction_type=TX_DEPOSIT,
                amount=1,
                status=STATUS_REJECTED,
            )

    def test_unknown_user(self, ledger) -> None:
        with pytest.raises(NotFound):
            ledger.record(
                user_id="ghost",
                transaction_type=TX_DEPOSIT,
                amount=1,
                status=STATUS_PENDING,
            )


# ── set_status ──────────────────────────────────────────────────────


class TestSetStatus:
    def test_complete_pending_deposit_credits(self, ledger, make_user) -> None:
        user = make_user()
        tx = ledger.record(
            user_id=user["user_id"], transaction_type=TX_DEPOSIT, amount=500, status=STATUS_PENDING
        )
        result = ledger.set_status(tx["transaction_id"], STATUS_COMPLETED)
        assert result["status"] == STATUS_COMPLETED
        assert ledger.get_balance(user["user_id"]) == Decimal("500.00")

    def test_reject_pending_has_no_balance_effect(self, ledger, make_user) -> None:
        user = make_user(balance=20)
        tx = ledger.record(
            user_id=user["user_id"], transaction_type=TX_DEPOSIT, amount=500, status=STATUS_PENDING
        )
        ledger.set_status(tx["transaction_id"], STATUS_REJECTED)
        assert ledger.get_balance(user["user_id"]) == Decimal("20.00")
        assert ledger.get_transaction(tx["transaction_id"])["status"] == STATUS_REJECTED

    def test_complete_withdrawal_debits(self, ledger, make_user) -> None:
        user = make_user(balance=300)
        tx = ledger.record(
            user_id=user["user_id"], transaction_type=TX_WITHDRAW, amount=100, status=STATUS_PENDING
        )
        ledger.set_status(tx["transaction_id"], STATUS_COMPLETED)
        assert ledger.get_balance(user["user_id"]) == Decimal("200.00")

    def test_overdrawing_completion_stays_pending(self, ledger, make_user) -> None:
        user = make_user(balance=300)
        tx = ledger.record(
            user_id=user["user_id"], transaction_type=TX_WITHDRAW, amount=300, status=STATUS_PENDING
        )
        ledger.record(
            user_id=user["user_id"],
            transaction_type=TX_TICKET_PURCHASE,
            amount=10,
            status=STATUS_COMPLETED,
        )
        with pytest.raises(InsufficientBalance):
            ledger.set_status(tx["transaction_id"], STATUS_COMPLETED)
        assert ledger.get_transaction(tx["transaction_id"])["status"] == STATUS_PENDING
        assert ledger.get_balance(user["user_id"]) == Decimal("290.00")

    @pytest.mark.parametrize("terminal", [STATUS_COMPLETED, STATUS_REJECTED])
    @pytest.mark.parametrize("target", [STATUS_COMPLETED, STATUS_REJECTED, STATUS_PENDING])
    def test_terminal_states_are_final(self, ledger, make_user, terminal: str, target: str) -> None:
        user = make_user()
        tx = ledger.record(
            user_id=user["user_id"], transaction_type=TX_DEPOSIT, amount=50, status=STATUS_PENDING
        )
        ledger.set_status(tx["transaction_id"], terminal)
        balance = ledger.get_balance(user["user_id"])
        with pytest.raises(InvalidTransition):
            ledger.set_status(tx["transaction_id"], target)
        assert ledger.get_balance(user["user_id"]) == balance

    def test_double_approval_credits_once(self, ledger, make_user) -> None:
        user = make_user()
        tx = ledger.record(
            user_id=user["user_id"], transaction_type=TX_DEPOSIT, amount=500, status=STATUS_PENDING
        )
        ledger.set_status(tx["transaction_id"], STATUS_COMPLETED)
        with pytest.raises(InvalidTransition):
            ledger.set_status(tx["transaction_id"], STATUS_COMPLETED)
        assert ledger.get_balance(user["user_id"]) == Decimal("500.00")

    def test_unknown_transaction(self, ledger) -> None:
        with pytest.raises(NotFound):
            ledger.set_status("nope", STATUS_COMPLETED)

    def test_unknown_status(self, ledger, make_user) -> None:
        user = make_user()
        tx = ledger.record(
            user_id=user["user_id"], transaction_type=TX_DEPOSIT, amount=5, status=STATUS_PENDING
        )
        with pytest.raises(ValidationError):
            ledger.set_status(tx["transaction_id"], "approved")

    def test_expected_type_mismatch(self, ledger, make_user) -> None:
        user = make_user()
        tx = ledger.record(
            user_id=user["user_id"], transaction_type=TX_DEPOSIT, amount=5, status=STATUS_PENDING
        )
        with pytest.raises(ValidationError, match="not a withdraw"):
            ledger.set_status(tx["transaction_id"], STATUS_COMPLETED, expected_type=TX_WITHDRAW)
        assert ledger.get_transaction(tx["transaction_id"])["status"] == STATUS_PENDING

    def test_returned_row_does_not_alias_storage(self, db, ledger, make_user) -> None:
        user = make_user()
        tx = ledger.record(
            user_id=user["user_id"], transaction_type=TX_DEPOSIT, amount=5, status=STATUS_PENDING
        )
        result = ledger.set_status(tx["transaction_id"], STATUS_REJECTED)
        result["status"] = STATUS_PENDING
        assert db.transactions.find_by_id(tx["transaction_id"])["status"] == STATUS_REJECTED


# ── Inbound requests ────────────────────────────────────────────────


class TestRequestDeposit:
    def test_creates_pending_with_details(self, ledger, make_user) -> None:
        user = make_user()
        tx = ledger.request_deposit(
            user_id=user["user_id"],
            amount="500",
            transaction_ref="UPI1234567",
            account_name="Asha Rao",
            screenshot="https://example.com/proof.png",
        )
        assert tx["transaction_type"] == TX_DEPOSIT
        assert tx["status"] == STATUS_PENDING
        assert tx["description"] == "Deposit of ₹500"
        assert tx["details"] == {
            "transaction_ref": "UPI1234567",
            "account_name": "Asha Rao",
            "screenshot": "https://example.com/proof.png",
        }
        assert ledger.get_balance(user["user_id"]) == Decimal("0.00")

    def test_short_reference_rejected(self, ledger, make_user) -> None:
        user = make_user()
        with pytest.raises(ValidationError, match="Transaction ID"):
            ledger.request_deposit(
                user_id=user["user_id"], amount=5, transaction_ref="abc", account_name="Asha"
            )

    def test_short_name_rejected(self, ledger, make_user) -> None:
        user = make_user()
        with pytest.raises(ValidationError, match="Name"):
            ledger.request_deposit(
                user_id=user["user_id"], amount=5, transaction_ref="abcd", account_name="A"
            )


class TestRequestWithdrawal:
    def test_creates_pending_without_debit(self, ledger, make_user) -> None:
        user = make_user(balance=300)
        tx = ledger.request_withdrawal(
            user_id=user["user_id"],
            amount=100,
            upi_id="asha@ybl",
            account_name="Asha Rao",
            mobile="9876543210",
        )
        assert tx["status"] == STATUS_PENDING
        assert tx["details"]["upi_id"] == "asha@ybl"
        assert ledger.get_balance(user["user_id"]) == Decimal("300.00")

    def test_refused_above_balance(self, db, ledger, make_user) -> None:
        user = make_user(balance=50)
        before = len(db.transactions.all())
        with pytest.raises(InsufficientBalance):
            ledger.request_withdrawal(
                user_id=user["user_id"],
                amount=100,
                upi_id="asha@ybl",
                account_name="Asha Rao",
                mobile="9876543210",
            )
        assert len(db.transactions.all()) == before

    @pytest.mark.parametrize(
        ("field", "value"),
        [("upi_id", "a@b"), ("account_name", "A"), ("mobile", "12345"), ("mobile", "98765abcde")],
    )
    def test_field_validation(self, ledger, make_user, field: str, value: str) -> None:
        user = make_user(balance=500)
        kwargs = {
            "upi_id": "asha@ybl",
            "account_name": "Asha Rao",
            "mobile": "9876543210",
            field: value,
        }
        with pytest.raises(ValidationError):
            ledger.request_withdrawal(user_id=user["user_id"], amount=100, **kwargs)


# ── Queries ─────────────────────────────────────────────────────────


class TestQueries:
    def test_list_most_recent_first(self, ledger, make_user) -> None:
        user = make_user(balance=100)
        first = ledger.request_deposit(
            user_id=user["user_id"], amount=5, transaction_ref="ref-1", account_name="Asha"
        )
        second = ledger.request_deposit(
            user_id=user["user_id"], amount=6, transaction_ref="ref-2", account_name="Asha"
        )
        ids = [t["transaction_id"] for t in ledger.list_transactions(user["user_id"])]
        assert ids.index(second["transaction_id"]) < ids.index(first["transaction_id"])

    def test_list_filters(self, ledger, make_user) -> None:
        user = make_user(balance=100)
        ledger.request_deposit(
            user_id=user["user_id"], amount=5, transaction_ref="ref-1", account_name="Asha"
        )
        pending = ledger.list_transactions(user["user_id"], status=STATUS_PENDING)
        assert [t["status"] for t in pending] == [STATUS_PENDING]
        completed = ledger.list_transactions(user["user_id"], transaction_type=TX_DEPOSIT, status=STATUS_COMPLETED)
        assert len(completed) == 1

    def test_list_rejects_unknown_filter(self, ledger, make_user) -> None:
        user = make_user()
        with pytest.raises(ValidationError):
            ledger.list_transactions(user["user_id"], status="approved")

    def test_pending_projections(self, ledger, make_user) -> None:
        user = make_user(balance=100)
        dep = ledger.request_deposit(
            user_id=user["user_id"], amount=5, transaction_ref="ref-1", account_name="Asha"
        )
        wd = ledger.request_withdrawal(
            user_id=user["user_id"],
            amount=10,
            upi_id="asha@ybl",
            account_name="Asha",
            mobile="9876543210",
        )
        assert [t["transaction_id"] for t in ledger.pending_deposits()] == [dep["transaction_id"]]
        assert [t["transaction_id"] for t in ledger.pending_withdrawals()] == [wd["transaction_id"]]

        ledger.set_status(dep["transaction_id"], STATUS_COMPLETED)
        assert ledger.pending_deposits() == []

    def test_get_balance_unknown_user(self, ledger) -> None:
        with pytest.raises(NotFound):
            ledger.get_balance("ghost")


# ── Audit / repair ──────────────────────────────────────────────────


class TestAudit:
    def test_consistent_after_normal_use(self, ledger, make_user) -> None:
        user = make_user(balance=100)
        ledger.record(
            user_id=user["user_id"],
            transaction_type=TX_TICKET_PURCHASE,
            amount=10,
            status=STATUS_COMPLETED,
        )
        report = ledger.audit_balance(user["user_id"])
        assert report["consistent"] is True
        assert report["ledger_balance"] == Decimal("90.00")

    def test_detects_and_repairs_drift(self, db, ledger, make_user) -> None:
        user = make_user(balance=100)
        db.users.set_balance(user["user_id"], Decimal("999.00"))

        report = ledger.audit_balance(user["user_id"])
        assert report["consistent"] is False
        assert report["difference"] == Decimal("899.00")

        repaired = ledger.repair_balance(user["user_id"])
        assert repaired["previous_balance"] == Decimal("999.00")
        assert ledger.get_balance(user["user_id"]) == Decimal("100.00")
        assert ledger.audit_balance(user["user_id"])["consistent"] is True


# ── Row locking ─────────────────────────────────────────────────────


class TestRowLocking:
    def test_record_and_approval_lock_the_user_row(self, db, ledger, make_user) -> None:
        user = make_user(balance=100)
        db.users.locked.clear()

        pending = ledger.request_withdrawal(
            user_id=user["user_id"], amount=40, upi_id="demo@upi", account_name="Demo", mobile="9876543210"
        )
        ledger.set_status(pending["transaction_id"], STATUS_COMPLETED)

        assert db.users.locked == [user["user_id"], user["user_id"]]

    def test_funds_check_uses_the_locked_row(self, db, ledger, make_user) -> None:
        user = make_user(balance=100)
        pending = ledger.request_withdrawal(
            user_id=user["user_id"], amount=50, upi_id="demo@upi", account_name="Demo", mobile="9876543210"
        )
        lock_for_update = db.users.lock_for_update

        def debited_while_waiting(user_id: str):  # type: ignore[no-untyped-def]
            # Another process spends 80 before the lock is granted
            db.users.apply_balance_delta(user_id, Decimal("-80.00"))
            return lock_for_update(user_id)

        with patch.object(db.users, "lock_for_update", side_effect=debited_while_waiting):
            with pytest.raises(InsufficientBalance):
                ledger.set_status(pending["transaction_id"], STATUS_COMPLETED)

        assert ledger.get_transaction(pending["transaction_id"])["status"] == STATUS_PENDING

    def test_repair_reads_and_writes_under_one_row_lock(
        self, mock_pool: MockPool, mock_cursor: MockCursor
    ) -> None:
        ledger = LedgerService(
            transaction_repo=TransactionRepository(mock_pool),
            user_repo=UserRepository(mock_pool),
            atomic=partial(atomic, mock_pool),
        )
        set_mock_query_result(
            mock_cursor,
            ["user_id", "balance", "transaction_type", "amount", "status"],
            [("u1", Decimal("150.00"), TX_DEPOSIT, Decimal("100.00"), STATUS_COMPLETED)],
        )

        repaired = ledger.repair_balance("u1")

        assert repaired["previous_balance"] == Decimal("150.00")
        assert repaired["balance"] == Decimal("100.00")
        statements = [sql for sql, _ in mock_cursor._execute_log]
        assert statements[0].endswith("FOR UPDATE")
        assert "FROM transactions" in statements[1]
        assert statements[2].startswith("UPDATE users SET balance")
        assert mock_pool.acquired == 1
        assert mock_pool._connection.commits == 1
