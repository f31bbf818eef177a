"""Scheduled jobs, run from cron or a worker:

    python -m cayden_gateway.jobs fund-pending
    python -m cayden_gateway.jobs mark-overdue [--as-of 2026-10-17]
"""

import argparse
import logging
import sys
from datetime import date
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from cayden_gateway.config import settings
from cayden_gateway.infrastructure.database.session import SessionLocal
from cayden_gateway.infrastructure.observability.logging import setup_logging
from cayden_gateway.services.advances import fund_pending_advances, mark_overdue_advances


def run_fund_pending(db: Session, args: argparse.Namespace) -> List[str]:
    return fund_pending_advances(db)


def run_mark_overdue(db: Session, args: argparse.Namespace) -> List[str]:
    return mark_overdue_advances(db, today=args.as_of)


JOBS: Dict[str, Callable[[Session, argparse.Namespace], List[str]]] = {
    "fund-pending": run_fund_pending,
    "mark-overdue": run_mark_overdue,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cayden_gateway.jobs", description="Advance maintenance jobs")
    parser.add_argument("job", choices=sorted(JOBS))
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Treat this date as today (mark-overdue only)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings.log_level)

    db = SessionLocal()
    try:
        affected = JOBS[args.job](db, args)
    finally:
        db.close()

    logging.info("Job finished", extra={"job": args.job, "affected": len(affected)})
    print(f"{args.job}: {len(affected)} advance(s) updated")
    return 0


if __name__ == "__main__":
    sys.exit(main())
