"""Password hashing (Argon2id) and bearer tokens (HS256 JWT) for the mock login."""

from __future__ import annotations

import logging
import time
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

# ── Password Hashing ────────────────────────────────────────────────

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)


def hash_password(plain: str) -> str:
    """Hash a plain-text password with Argon2id."""
    return str(pwd_context.hash(plain))


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plain-text password against an Argon2id hash."""
    try:
        return bool(pwd_context.verify(plain, hashed))
    except (ValueError, TypeError):
        return False


# ── JWT ─────────────────────────────────────────────────────────────

_jwt_secret: str | None = None
_jwt_algorithm: str | None = None


def _signing_params() -> tuple[str, str]:
    """Secret and algorithm from settings (cached)."""
    global _jwt_secret, _jwt_algorithm  # noqa: PLW0603
    if _jwt_secret is None or _jwt_algorithm is None:
        from luckylottery.core.config import get_settings

        settings = get_settings()
        _jwt_secret = settings.jwt_secret_key
        _jwt_algorithm = settings.jwt_algorithm
    return _jwt_secret, _jwt_algorithm


def create_access_token(
    subject: str,
    role: str = "user",
    expires_minutes: int = 60,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Create a signed JWT access token."""
    secret, algorithm = _signing_params()
    now = int(time.time())
    payload: dict[str, Any] = {
        "sub": subject,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": now + (expires_minutes * 60),
    }
    if extra_claims:
        payload.update(extra_claims)
    return str(jwt.encode(payload, secret, algorithm=algorithm))


def decode_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT token. Raises JWTError on failure."""
    secret, algorithm = _signing_params()
    payload: dict[str, Any] = jwt.decode(token, secret, algorithms=[algorithm])
    return payload


def decode_token_safe(token: str) -> dict[str, Any] | None:
    """Decode a JWT token, returning None on any error."""
    try:
        return decode_token(token)
    except JWTError:
        return None
