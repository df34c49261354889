"""Request context via contextvars: correlation IDs and the acting user."""

from __future__ import annotations

from contextvars import ContextVar

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_actor_id: ContextVar[str | None] = ContextVar("actor_id", default=None)


def set_correlation_id(value: str) -> None:
    """Set the correlation ID for the current request context."""
    _correlation_id.set(value)


def get_correlation_id() -> str | None:
    """Get the correlation ID for the current request context."""
    return _correlation_id.get()


def set_actor_id(value: str | None) -> None:
    """Record which user (or admin) issued the current request."""
    _actor_id.set(value)


def get_actor_id() -> str | None:
    return _actor_id.get()
