"""In-process mutual exclusion for ledger, ticket and draw operations.

Per-user operations (recording a transaction, changing its status, buying a
ticket) serialize on that user's lock and hold the global gate in shared
mode. The daily draw touches many users' ledgers at once and holds the gate
exclusively, so no user operation runs while a draw is settling.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class LockRegistry:
    """Per-user re-entrant locks behind a shared/exclusive gate."""

    def __init__(self) -> None:
        self._registry_guard = threading.Lock()
        self._user_locks: dict[str, threading.RLock] = {}

        self._gate = threading.Condition(threading.Lock())
        self._shared_depth: dict[int, int] = {}
        self._exclusive_owner: int | None = None
        self._exclusive_depth = 0
        self._exclusive_waiting = 0

    # ── public scopes ───────────────────────────────────────────────

    @contextmanager
    def user(self, user_id: str) -> Iterator[None]:
        """Serialize operations on a single user's ledger and tickets."""
        self._acquire_shared()
        try:
            with self._lock_for(user_id):
                yield
        finally:
            self._release_shared()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        """Block every per-user operation for the duration of the scope."""
        self._acquire_exclusive()
        try:
            yield
        finally:
            self._release_exclusive()

    @property
    def exclusive_held(self) -> bool:
        """True while some thread holds the gate exclusively."""
        with self._gate:
            return self._exclusive_owner is not None

    # ── internals ───────────────────────────────────────────────────

    def _lock_for(self, user_id: str) -> threading.RLock:
        with self._registry_guard:
            lock = self._user_locks.get(user_id)
            if lock is None:
                lock = threading.RLock()
                self._user_locks[user_id] = lock
            return lock

    def _acquire_shared(self) -> None:
        me = threading.get_ident()
        with self._gate:
            # Re-entry, or a user operation issued from inside the draw
            if self._exclusive_owner == me or me in self._shared_depth:
                self._shared_depth[me] = self._shared_depth.get(me, 0) + 1
                return
            while self._exclusive_owner is not None or self._exclusive_waiting:
                self._gate.wait()
            self._shared_depth[me] = 1

    def _release_shared(self) -> None:
        me = threading.get_ident()
        with self._gate:
            depth = self._shared_depth.get(me, 0) - 1
            if depth <= 0:
                self._shared_depth.pop(me, None)
                self._gate.notify_all()
            else:
                self._shared_depth[me] = depth

    def _acquire_exclusive(self) -> None:
        me = threading.get_ident()
        with self._gate:
            if self._exclusive_owner == me:
                self._exclusive_depth += 1
                return
            if me in self._shared_depth:
                raise RuntimeError("Cannot take the exclusive gate while holding a user lock")
            self._exclusive_waiting += 1
            try:
                while self._exclusive_owner is not None or self._shared_depth:
                    self._gate.wait()
            finally:
                self._exclusive_waiting -= 1
            self._exclusive_owner = me
            self._exclusive_depth = 1
            logger.debug("Exclusive gate acquired by thread %d", me)

    def _release_exclusive(self) -> None:
        with self._gate:
            self._exclusive_depth -= 1
            if self._exclusive_depth == 0:
                self._exclusive_owner = None
                self._gate.notify_all()
