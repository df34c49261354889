"""Database migration scripts for Lucky Lottery.

Run all migrations in order to set up the schema.
"""

from __future__ import annotations

import logging

import oracledb

logger = logging.getLogger(__name__)


MIGRATION_001_USERS = """
CREATE TABLE users (
    user_id             VARCHAR2(32) PRIMARY KEY,
    name                VARCHAR2(100) NOT NULL,
    email               VARCHAR2(255) NOT NULL UNIQUE,
    mobile              VARCHAR2(10) NOT NULL,
    password_hash       VARCHAR2(255) NOT NULL,
    role                VARCHAR2(20) DEFAULT 'user'
                        CHECK (role IN ('user','admin')),
    balance             NUMBER(14,2) DEFAULT 0 NOT NULL,
    created_at          TIMESTAMP DEFAULT SYSTIMESTAMP,
    CONSTRAINT chk_balance CHECK (balance >= 0)
)
"""

MIGRATION_001_TRANSACTIONS = """
CREATE TABLE transactions (
    transaction_id      VARCHAR2(32) PRIMARY KEY,
    seq                 NUMBER GENERATED ALWAYS AS IDENTITY,
    user_id             VARCHAR2(32) NOT NULL REFERENCES users(user_id),
    transaction_type    VARCHAR2(20) NOT NULL
                        CHECK (transaction_type IN ('deposit','withdraw','ticket-purchase','winning')),
    amount              NUMBER(14,2) NOT NULL,
    status              VARCHAR2(20) DEFAULT 'pending'
                        CHECK (status IN ('pending','completed','rejected')),
    description         VARCHAR2(500),
    details             CLOB CHECK (details IS JSON),
    created_at          TIMESTAMP DEFAULT SYSTIMESTAMP,
    CONSTRAINT chk_tx_amount CHECK (amount > 0)
)
"""

MIGRATION_001_TICKETS = """
CREATE TABLE tickets (
    ticket_id               VARCHAR2(32) PRIMARY KEY,
    seq                     NUMBER GENERATED ALWAYS AS IDENTITY,
    user_id                 VARCHAR2(32) NOT NULL REFERENCES users(user_id),
    numbers                 VARCHAR2(100) NOT NULL CHECK (numbers IS JSON),
    price                   NUMBER(14,2) NOT NULL,
    purchase_date           TIMESTAMP DEFAULT SYSTIMESTAMP,
    draw_date               TIMESTAMP NOT NULL,
    status                  VARCHAR2(20) DEFAULT 'active'
                            CHECK (status IN ('active','drawn','won','lost')),
    purchase_transaction_id VARCHAR2(32) NOT NULL UNIQUE
                            REFERENCES transactions(transaction_id),
    matched_numbers         NUMBER(1),
    prize                   NUMBER(14,2),
    draw_id                 VARCHAR2(32),
    settled_at              TIMESTAMP
)
"""

MIGRATION_001_DRAW_RESULTS = """
CREATE TABLE draw_results (
    draw_id             VARCHAR2(32) PRIMARY KEY,
    numbers             VARCHAR2(100) NOT NULL CHECK (numbers IS JSON),
    draw_date           TIMESTAMP NOT NULL,
    tiers               CLOB CHECK (tiers IS JSON),
    total_tickets       NUMBER(10) DEFAULT 0
)
"""

MIGRATION_001_WINNERS = """
CREATE TABLE winners (
    winner_id           VARCHAR2(32) PRIMARY KEY,
    draw_id             VARCHAR2(32) NOT NULL REFERENCES draw_results(draw_id)
                        DEFERRABLE INITIALLY DEFERRED,
    user_id             VARCHAR2(32) NOT NULL REFERENCES users(user_id),
    user_name           VARCHAR2(100),
    ticket_id           VARCHAR2(32) NOT NULL UNIQUE REFERENCES tickets(ticket_id),
    numbers             VARCHAR2(100) NOT NULL CHECK (numbers IS JSON),
    matched_numbers     NUMBER(1) NOT NULL,
    prize               NUMBER(14,2) NOT NULL,
    draw_date           TIMESTAMP NOT NULL
)
"""

# Creation order respects foreign keys
ALL_TABLE_DDLS = [
    ("users", MIGRATION_001_USERS),
    ("transactions", MIGRATION_001_TRANSACTIONS),
    ("tickets", MIGRATION_001_TICKETS),
    ("draw_results", MIGRATION_001_DRAW_RESULTS),
    ("winners", MIGRATION_001_WINNERS),
]

MIGRATION_002_INDEXES = [
    "CREATE INDEX idx_tx_user ON transactions(user_id, created_at)",
    "CREATE INDEX idx_tx_status ON transactions(status, transaction_type)",
    "CREATE INDEX idx_tickets_user ON tickets(user_id, purchase_date)",
    "CREATE INDEX idx_tickets_status ON tickets(status)",
    "CREATE INDEX idx_draws_date ON draw_results(draw_date)",
    "CREATE INDEX idx_winners_draw ON winners(draw_id)",
]

DROP_ORDER = ["winners", "draw_results", "tickets", "transactions", "users"]


def table_exists(conn: oracledb.Connection, table_name: str) -> bool:
    """Check if a table exists in the current schema."""
    with conn.cursor() as cur:
        cur.execute(
            "SELECT COUNT(*) FROM user_tables WHERE table_name = :name",
            {"name": table_name.upper()},
        )
        row = cur.fetchone()
        return bool(row and row[0] > 0)


def run_migrations(conn: oracledb.Connection) -> list[str]:
    """Run all pending migrations. Returns list of actions taken."""
    actions: list[str] = []

    for table_name, ddl in ALL_TABLE_DDLS:
        if not table_exists(conn, table_name):
            with conn.cursor() as cur:
                cur.execute(ddl)
            actions.append(f"Created table: {table_name}")
            logger.info("Created table: %s", table_name)

    # Create indexes (ignore if already exists)
    for idx_sql in MIGRATION_002_INDEXES:
        try:
            with conn.cursor() as cur:
                cur.execute(idx_sql)
            idx_name = idx_sql.split("INDEX ")[1].split(" ON")[0]
            actions.append(f"Created index: {idx_name}")
        except oracledb.DatabaseError as e:
            error_obj = e.args[0]
            # ORA-00955: name already used; ORA-01408: column list already indexed
            if not (hasattr(error_obj, "code") and error_obj.code in (955, 1408)):
                raise

    conn.commit()
    return actions


def drop_all_tables(conn: oracledb.Connection) -> list[str]:
    """Drop all tables (for reset). Returns list of actions taken."""
    actions: list[str] = []
    for table_name in DROP_ORDER:
        if table_exists(conn, table_name):
            with conn.cursor() as cur:
                cur.execute(f"DROP TABLE {table_name} CASCADE CONSTRAINTS PURGE")
            actions.append(f"Dropped table: {table_name}")
            logger.info("Dropped table: %s", table_name)
    conn.commit()
    return actions
