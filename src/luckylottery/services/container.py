"""Service container — each service built once and shared by handle.

The API keeps one container on ``app.state``; the workers build their own.
Every service in a container shares the same lock registry and unit of work,
which is what makes the per-user and draw-wide locking effective.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any

from luckylottery.core.config import Settings
from luckylottery.core.database import atomic
from luckylottery.core.locks import LockRegistry
from luckylottery.repositories.draw_result_repository import DrawResultRepository
from luckylottery.repositories.ticket_repository import TicketRepository
from luckylottery.repositories.transaction_repository import TransactionRepository
from luckylottery.repositories.user_repository import UserRepository
from luckylottery.repositories.winner_repository import WinnerRepository
from luckylottery.services.accounts import AccountService
from luckylottery.services.admin import AdminService
from luckylottery.services.draw_engine import DrawEngine
from luckylottery.services.ledger import LedgerService
from luckylottery.services.tickets import TicketService


@dataclass
class ServiceContainer:
    settings: Settings
    locks: LockRegistry
    accounts: AccountService
    ledger: LedgerService
    tickets: TicketService
    draws: DrawEngine
    admin: AdminService


def build_container(settings: Settings, pool: Any) -> ServiceContainer:
    """Wire repositories on *pool* into one set of services."""
    locks = LockRegistry()
    user_repo = UserRepository(pool=pool)

    ledger = LedgerService(
        transaction_repo=TransactionRepository(pool=pool),
        user_repo=user_repo,
        locks=locks,
        atomic=partial(atomic, pool),
    )
    tickets = TicketService(
        ticket_repo=TicketRepository(pool=pool),
        ledger=ledger,
        ticket_price=settings.ticket_price,
        draw_hour_utc=settings.draw_hour_utc,
    )
    draws = DrawEngine(
        ticket_service=tickets,
        ledger=ledger,
        draw_result_repo=DrawResultRepository(pool=pool),
        winner_repo=WinnerRepository(pool=pool),
    )
    return ServiceContainer(
        settings=settings,
        locks=locks,
        accounts=AccountService(
            user_repo=user_repo,
            token_expire_minutes=settings.jwt_access_token_expire_minutes,
        ),
        ledger=ledger,
        tickets=tickets,
        draws=draws,
        admin=AdminService(ledger=ledger, draw_engine=draws, user_repo=user_repo),
    )
