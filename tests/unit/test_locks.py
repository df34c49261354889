"""Tests for the per-user locks and the exclusive draw gate."""

from __future__ import annotations

import threading
import time

import pytest

from luckylottery.core.locks import LockRegistry


class TestUserScope:
    def test_reentrant(self, locks: LockRegistry) -> None:
        with locks.user("u1"), locks.user("u1"):
            pass

    def test_same_user_serializes(self, locks: LockRegistry) -> None:
        order: list[str] = []

        def other() -> None:
            with locks.user("u1"):
                order.append("other")

        with locks.user("u1"):
            t = threading.Thread(target=other)
            t.start()
            time.sleep(0.05)
            order.append("first")
        t.join(timeout=2)
        assert order == ["first", "other"]

    def test_different_users_do_not_block(self, locks: LockRegistry) -> None:
        done = threading.Event()

        def other() -> None:
            with locks.user("u2"):
                done.set()

        with locks.user("u1"):
            t = threading.Thread(target=other)
            t.start()
            assert done.wait(timeout=2)
        t.join(timeout=2)


class TestExclusiveScope:
    def test_blocks_user_operations(self, locks: LockRegistry) -> None:
        order: list[str] = []

        def user_op() -> None:
            with locks.user("u1"):
                order.append("user")

        with locks.exclusive():
            t = threading.Thread(target=user_op)
            t.start()
            time.sleep(0.05)
            order.append("draw")
        t.join(timeout=2)
        assert order == ["draw", "user"]

    def test_waits_for_running_user_operation(self, locks: LockRegistry) -> None:
        order: list[str] = []
        started = threading.Event()

        def draw() -> None:
            with locks.exclusive():
                order.append("draw")

        with locks.user("u1"):
            t = threading.Thread(target=lambda: (started.set(), draw()))
            t.start()
            started.wait(timeout=2)
            time.sleep(0.05)
            order.append("user")
        t.join(timeout=2)
        assert order == ["user", "draw"]

    def test_holder_may_take_user_scopes(self, locks: LockRegistry) -> None:
        with locks.exclusive():
            assert locks.exclusive_held is True
            with locks.user("u1"), locks.user("u2"):
                pass
            with locks.exclusive():
                pass
            assert locks.exclusive_held is True
        assert locks.exclusive_held is False

    def test_cannot_upgrade_from_user_scope(self, locks: LockRegistry) -> None:
        with locks.user("u1"), pytest.raises(RuntimeError):
            with locks.exclusive():
                pass
        assert locks.exclusive_held is False
