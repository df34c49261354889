"""Admin mediation — approve or reject pending deposits and withdrawals.

Admins never see or change amounts here; approval is a status transition and
the ledger applies the balance effect.
"""

from __future__ import annotations

import logging
from typing import Any

from luckylottery.core.constants import (
    MODERATED_TYPES,
    STATUS_COMPLETED,
    STATUS_REJECTED,
    TX_DEPOSIT,
    TX_WITHDRAW,
)
from luckylottery.core.errors import ValidationError
from luckylottery.services.accounts import public_user
from luckylottery.services.draw_engine import DrawEngine
from luckylottery.services.ledger import LedgerService

logger = logging.getLogger(__name__)


class AdminService:
    """Service for admin-level ledger operations."""

    def __init__(self, ledger: LedgerService, draw_engine: DrawEngine, user_repo: Any) -> None:
        self.ledger = ledger
        self.draw_engine = draw_engine
        self.user_repo = user_repo

    # ── Moderation ──────────────────────────────────────────────────

    def approve_deposit(self, transaction_id: str) -> dict[str, Any]:
        result = self.ledger.set_status(transaction_id, STATUS_COMPLETED, expected_type=TX_DEPOSIT)
        logger.info("Deposit %s approved", transaction_id)
        return result

    def approve_withdrawal(self, transaction_id: str) -> dict[str, Any]:
        result = self.ledger.set_status(transaction_id, STATUS_COMPLETED, expected_type=TX_WITHDRAW)
        logger.info("Withdrawal %s approved", transaction_id)
        return result

    def approve_transaction(self, transaction_id: str, transaction_type: str) -> dict[str, Any]:
        """Route an approval to the deposit or withdrawal path."""
        if transaction_type == TX_DEPOSIT:
            return self.approve_deposit(transaction_id)
        if transaction_type == TX_WITHDRAW:
            return self.approve_withdrawal(transaction_id)
        raise ValidationError(f"Only {', '.join(MODERATED_TYPES)} can be approved")

    def reject_transaction(self, transaction_id: str, transaction_type: str) -> dict[str, Any]:
        """Reject a pending deposit or withdrawal; the balance is untouched."""
        if transaction_type not in MODERATED_TYPES:
            raise ValidationError(f"Only {', '.join(MODERATED_TYPES)} can be rejected")
        result = self.ledger.set_status(
            transaction_id, STATUS_REJECTED, expected_type=transaction_type
        )
        logger.info("%s %s rejected", transaction_type.capitalize(), transaction_id)
        return result

    def pending_deposits(self) -> list[dict[str, Any]]:
        return self.ledger.pending_deposits()

    def pending_withdrawals(self) -> list[dict[str, Any]]:
        return self.ledger.pending_withdrawals()

    # ── Users / draws / audit ───────────────────────────────────────

    def list_users(self, limit: int = 100, offset: int = 0) -> list[dict[str, Any]]:
        return [public_user(u) for u in self.user_repo.list_users(limit=limit, offset=offset)]

    def run_daily_draw(self, winning_numbers: list[int] | None = None) -> dict[str, Any]:
        return self.draw_engine.run_daily_draw(winning_numbers=winning_numbers)

    def audit_balances(self, repair: bool = False) -> dict[str, Any]:
        """Check every user's cached balance against the ledger sum.

        With ``repair`` the drifted balances are overwritten by the ledger sum.
        """
        reports: list[dict[str, Any]] = []
        page_size = 100
        offset = 0
        while True:
            batch = self.user_repo.list_users(limit=page_size, offset=offset)
            for user in batch:
                report = self.ledger.audit_balance(user["user_id"])
                if repair and not report["consistent"]:
                    self.ledger.repair_balance(user["user_id"])
                    report["repaired"] = True
                reports.append(report)
            offset += len(batch)
            if len(batch) < page_size:
                break

        drifted = [r for r in reports if not r["consistent"]]
        logger.info("Balance audit: %d users, %d drifted", len(reports), len(drifted))
        return {
            "users_checked": len(reports),
            "drifted": len(drifted),
            "reports": drifted,
        }
