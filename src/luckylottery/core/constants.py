"""Domain constants for Lucky Lottery."""

from __future__ import annotations

from decimal import Decimal

# ── Money ───────────────────────────────────────────────────────────
MONEY_QUANTUM = Decimal("0.01")  # Amounts are kept to the paisa
DEFAULT_TICKET_PRICE = Decimal("10.00")

# ── Number Pool ─────────────────────────────────────────────────────
NUMBER_MIN = 0
NUMBER_MAX = 49
NUMBERS_PER_TICKET = 5

# ── Prize Table (matched numbers → payout) ──────────────────────────
PRIZE_TABLE: dict[int, Decimal] = {
    5: Decimal("10000000"),  # 1 Crore
    4: Decimal("1000000"),  # 10 Lakh
    3: Decimal("600000"),  # 6 Lakh
    2: Decimal("500"),
    1: Decimal("100"),
}

PRIZE_DESCRIPTIONS: dict[int, str] = {
    5: "Match all 5 numbers",
    4: "Match 4 numbers",
    3: "Match 3 numbers",
    2: "Match 2 numbers",
    1: "Match 1 number",
}

# ── Transaction Types & Statuses ────────────────────────────────────
TX_DEPOSIT = "deposit"
TX_WITHDRAW = "withdraw"
TX_TICKET_PURCHASE = "ticket-purchase"
TX_WINNING = "winning"

TRANSACTION_TYPES: list[str] = [TX_DEPOSIT, TX_WITHDRAW, TX_TICKET_PURCHASE, TX_WINNING]

# +1 credits the balance, -1 debits it once the transaction is completed
BALANCE_SIGNS: dict[str, int] = {
    TX_DEPOSIT: 1,
    TX_WINNING: 1,
    TX_WITHDRAW: -1,
    TX_TICKET_PURCHASE: -1,
}

# Types that users request and admins moderate
MODERATED_TYPES: list[str] = [TX_DEPOSIT, TX_WITHDRAW]

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_REJECTED = "rejected"

TRANSACTION_STATUSES: list[str] = [STATUS_PENDING, STATUS_COMPLETED, STATUS_REJECTED]

VALID_STATUS_TRANSITIONS: dict[str, list[str]] = {
    STATUS_PENDING: [STATUS_COMPLETED, STATUS_REJECTED],
    STATUS_COMPLETED: [],  # Terminal
    STATUS_REJECTED: [],  # Terminal
}

# ── Ticket Statuses ─────────────────────────────────────────────────
TICKET_ACTIVE = "active"
TICKET_DRAWN = "drawn"
TICKET_WON = "won"
TICKET_LOST = "lost"

TICKET_STATUSES: list[str] = [TICKET_ACTIVE, TICKET_DRAWN, TICKET_WON, TICKET_LOST]
SETTLED_TICKET_STATUSES: list[str] = [TICKET_DRAWN, TICKET_WON, TICKET_LOST]

# ── User Roles ──────────────────────────────────────────────────────
USER_ROLES: list[str] = ["user", "admin"]
