"""Seed the database with the demo storefront accounts.

Usage:
    python -m scripts.seed_data

Creates a demo user and an admin. Their opening balances are booked as
completed deposits so the cached balance matches the ledger from day one.
Running it again leaves existing accounts alone.
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal
from typing import Any

import oracledb

from luckylottery.core.config import Settings
from luckylottery.core.constants import STATUS_COMPLETED, TX_DEPOSIT
from luckylottery.services.container import build_container

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

SEED_ACCOUNTS: list[dict[str, Any]] = [
    {
        "name": "Demo User",
        "email": "demo@example.com",
        "mobile": "9876543210",
        "password": os.getenv("SEED_DEMO_PASSWORD", "demo1234"),
        "role": "user",
        "opening_balance": Decimal("100.00"),
    },
    {
        "name": "Admin User",
        "email": "admin@luckylottery.com",
        "mobile": "9933308636",
        "password": os.getenv("SEED_ADMIN_PASSWORD", "admin1234"),
        "role": "admin",
        "opening_balance": Decimal("10000.00"),
    },
]


def seed_accounts(services: Any, user_repo: Any) -> list[str]:
    """Register the seed accounts that do not exist yet. Returns actions taken."""
    actions: list[str] = []
    for account in SEED_ACCOUNTS:
        if user_repo.find_by_email(account["email"]) is not None:
            logger.info("Account %s already exists, skipping", account["email"])
            continue

        session = services.accounts.register(
            name=account["name"],
            email=account["email"],
            mobile=account["mobile"],
            password=account["password"],
        )
        user_id = session["user"]["user_id"]
        if account["role"] != "user":
            user_repo.update(user_id, data={"role": account["role"]})
        services.ledger.record(
            user_id=user_id,
            transaction_type=TX_DEPOSIT,
            amount=account["opening_balance"],
            status=STATUS_COMPLETED,
            description="Opening balance",
        )
        actions.append(f"Seeded {account['role']} {account['email']}")
        logger.info("Seeded %s %s (%s)", account["role"], account["email"], user_id)
    return actions


def main() -> None:
    settings = Settings()
    oracledb.defaults.fetch_decimals = True
    pool = oracledb.create_pool(
        user=settings.oracle_user,
        password=settings.oracle_password,
        dsn=settings.oracle_dsn,
        min=1,
        max=2,
        increment=1,
    )
    try:
        services = build_container(settings, pool)
        seed_accounts(services, services.accounts.user_repo)
    finally:
        pool.close()


if __name__ == "__main__":
    main()
