"""Account service — registration, mock login and profile lookup."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import oracledb

from luckylottery.core.errors import NotFound, Unauthenticated, ValidationError
from luckylottery.core.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

# Fields never returned to callers
_PRIVATE_FIELDS = ("password_hash",)


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in user.items() if k not in _PRIVATE_FIELDS}


class AccountService:
    """Stateless service — receives the user repository via __init__."""

    def __init__(self, user_repo: Any, token_expire_minutes: int = 60) -> None:
        self.user_repo = user_repo
        self.token_expire_minutes = token_expire_minutes

    def register(
        self,
        name: str,
        email: str,
        mobile: str,
        password: str,
    ) -> dict[str, Any]:
        """Create a user with a zero balance and log them straight in."""
        name = name.strip()
        email = email.strip().lower()
        if len(name) < 2:
            raise ValidationError("Name must be at least 2 characters")
        if not (len(mobile) == 10 and mobile.isdigit()):
            raise ValidationError("Mobile number must be 10 digits")
        if not password:
            raise ValidationError("Password is required")

        if self.user_repo.find_by_email(email) is not None:
            raise ValidationError("Email already registered", status_code=409)

        user_id = uuid.uuid4().hex
        user_data: dict[str, Any] = {
            "name": name,
            "email": email,
            "mobile": mobile,
            "password_hash": hash_password(password),
            "role": "user",
            "balance": Decimal("0.00"),
            "created_at": datetime.now(tz=UTC),
        }
        try:
            self.user_repo.create(data=user_data, new_id=user_id)
        except oracledb.IntegrityError as exc:
            # A concurrent registration won the users.email unique constraint
            raise ValidationError("Email already registered", status_code=409) from exc

        logger.info("User registered: user_id=%s", user_id)
        return self._session({"user_id": user_id, **user_data})

    def login(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate with email + password and issue an access token."""
        user = self.user_repo.find_by_email(email.strip().lower())
        if user is None or not verify_password(password, user.get("password_hash") or ""):
            raise Unauthenticated("Invalid email or password")

        logger.info("User logged in: user_id=%s", user["user_id"])
        return self._session(user)

    def get_user(self, user_id: str) -> dict[str, Any]:
        user = self.user_repo.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return public_user(user)

    def _session(self, user: dict[str, Any]) -> dict[str, Any]:
        role = user.get("role") or "user"
        token = create_access_token(
            subject=user["user_id"],
            role=role,
            expires_minutes=self.token_expire_minutes,
        )
        return {
            "user": public_user(user),
            "access_token": token,
            "token_type": "bearer",
        }
