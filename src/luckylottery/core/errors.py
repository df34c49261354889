"""Typed failures raised by the ledger, ticket, draw and account services.

Every error carries an HTTP status hint so routes can translate it without
knowing which service raised it.
"""

from __future__ import annotations


class LotteryError(Exception):
    """Base service error with HTTP status hint."""

    status_code: int = 400

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        super().__init__(detail)


class ValidationError(LotteryError):
    """Malformed amount, wrong-length selection, unknown type, duplicate email."""

    status_code = 400


class NotFound(LotteryError):
    """Unknown user, transaction or ticket id."""

    status_code = 404


class InvalidTransition(LotteryError):
    """Status change not permitted from the current state."""

    status_code = 409


class InsufficientBalance(LotteryError):
    """The user's balance does not cover the debit."""

    status_code = 400


class Unauthenticated(LotteryError):
    """Caller is not logged in or presented bad credentials."""

    status_code = 401
