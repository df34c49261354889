"""CLI runner for Lucky Lottery workers.

Usage:
    python -m luckylottery.workers.run draw [--force]
    python -m luckylottery.workers.run audit [--repair]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from luckylottery.core.logging import setup_logging

logger = logging.getLogger(__name__)


def _get_container() -> Any:
    """Create a connection pool and wire the services on it."""
    import oracledb

    from luckylottery.core.config import Settings
    from luckylottery.services.container import build_container

    settings = Settings()
    oracledb.defaults.fetch_decimals = True
    pool = oracledb.create_pool(
        user=settings.oracle_user,
        password=settings.oracle_password,
        dsn=settings.oracle_dsn,
        min=settings.oracle_pool_min,
        max=settings.oracle_pool_max,
        increment=settings.oracle_pool_increment,
    )
    return build_container(settings, pool)


def run_draw(args: argparse.Namespace) -> int:
    """Run the daily draw once if it is due."""
    from luckylottery.workers.draw_worker import DrawWorker

    try:
        services = _get_container()
    except Exception as exc:
        logger.error("Cannot connect to database: %s", exc)
        return 1

    worker = DrawWorker(
        draw_engine=services.draws,
        draw_hour_utc=services.settings.draw_hour_utc,
    )
    r = worker.run(force=args.force).to_dict()
    if r["skipped"]:
        logger.info("Draw skipped: %s", r["skipped"])
    else:
        logger.info(
            "Draw complete: draw_id=%s tickets=%d errors=%d",
            r["draw_id"],
            r["total_tickets"],
            len(r["errors"]),
        )
    return 0 if r["success"] else 1


def run_audit(args: argparse.Namespace) -> int:
    """Audit every cached balance against the ledger."""
    try:
        services = _get_container()
    except Exception as exc:
        logger.error("Cannot connect to database: %s", exc)
        return 1

    report = services.admin.audit_balances(repair=args.repair)
    logger.info(
        "Audit complete: users=%d drifted=%d",
        report["users_checked"],
        report["drifted"],
    )
    for r in report["reports"]:
        logger.warning(
            "  %s cached=%s ledger=%s%s",
            r["user_id"],
            r["cached_balance"],
            r["ledger_balance"],
            " (repaired)" if r.get("repaired") else "",
        )
    if report["drifted"] and not args.repair:
        return 2
    return 0


WORKERS = {
    "draw": run_draw,
    "audit": run_audit,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run a Lucky Lottery worker once",
        prog="python -m luckylottery.workers.run",
    )
    parser.add_argument("worker", choices=list(WORKERS.keys()), help="Which worker to run")
    parser.add_argument(
        "--force",
        action="store_true",
        help="draw: run even if not due or already drawn today",
    )
    parser.add_argument(
        "--repair",
        action="store_true",
        help="audit: overwrite drifted balances with the ledger sum",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level.upper())

    logger.info("Running worker: %s", args.worker)
    sys.exit(WORKERS[args.worker](args))


if __name__ == "__main__":
    main()
