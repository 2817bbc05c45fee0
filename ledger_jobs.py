"""
Scheduled ledger jobs.

Usage:
    python ledger_jobs.py mark-overdue
    python ledger_jobs.py migrate-legacy --user-id 3
    python ledger_jobs.py generate-rent --month 2024-03 --user-id 3
    python ledger_jobs.py generate-recurring --month 2024-03 [--user-id 3]
"""
import argparse
import logging
import sys
from datetime import date

from config import LOG_LEVEL, RENT_DUE_DAY, get_impact_policy
from database import get_session_context
from services.directory import ContractDirectory
from services.migration_service import LegacyMigration
from services.obligation_service import ObligationService
from services.overdue_service import OverdueSweeper
from services.recurring_service import RecurringObligationService

logger = logging.getLogger("ledger_jobs")


def parse_month(value: str) -> date:
    try:
        year, month = (int(part) for part in value.split("-"))
        return date(year, month, 1)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid month '{value}'. Use YYYY-MM")


def mark_overdue(args) -> int:
    with get_session_context() as db:
        count = OverdueSweeper(db).mark_overdue(args.user_id)
    print(f"{count} obligation(s) marked overdue")
    return 0


def migrate_legacy(args) -> int:
    with get_session_context() as db:
        summary = LegacyMigration(db, ContractDirectory(db), get_impact_policy()).migrate_legacy_payments(
            args.user_id
        )
    print(
        f"migrated={summary.migrated} payments_created={summary.payments_created} "
        f"skipped={summary.skipped} errors={len(summary.errors)}"
    )
    for error in summary.errors:
        print(f"  legacy #{error.legacy_id}: {error.reason}")
    return 1 if summary.errors else 0


def generate_rent(args) -> int:
    with get_session_context() as db:
        service = ObligationService(db, ContractDirectory(db), get_impact_policy())
        results = service.generate_rent_obligations(args.user_id, args.month, due_day=args.due_day)
    print(f"generated={results['generated']} skipped={results['skipped']} errors={len(results['errors'])}")
    for error in results["errors"]:
        print(f"  {error}")
    return 1 if results["errors"] else 0


def generate_recurring(args) -> int:
    with get_session_context() as db:
        service = RecurringObligationService(db, ContractDirectory(db), get_impact_policy())
        if args.user_id is None:
            results = service.generate_pending(args.month)
        else:
            results = service.generate_for_month(args.user_id, args.month or date.today())
    print(f"generated={results['generated']} skipped={results['skipped']} errors={len(results['errors'])}")
    for error in results["errors"]:
        print(f"  {error}")
    return 1 if results["errors"] else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Obligation ledger jobs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    overdue = subparsers.add_parser("mark-overdue", help="Move past-due pending obligations to overdue")
    overdue.add_argument("--user-id", type=int, default=None, help="Only this agency account")
    overdue.set_defaults(func=mark_overdue)

    migrate = subparsers.add_parser("migrate-legacy", help="Carry legacy payments over into obligations")
    migrate.add_argument("--user-id", type=int, default=None, help="Only this agency account")
    migrate.set_defaults(func=migrate_legacy)

    rent = subparsers.add_parser("generate-rent", help="Bill rent for every active contract in a month")
    rent.add_argument("--month", type=parse_month, required=True, help="YYYY-MM")
    rent.add_argument("--user-id", type=int, required=True, help="Agency account to bill")
    rent.add_argument("--due-day", type=int, default=RENT_DUE_DAY)
    rent.set_defaults(func=generate_rent)

    recurring = subparsers.add_parser("generate-recurring", help="Bill recurring obligations for a month")
    recurring.add_argument("--month", type=parse_month, default=None, help="YYYY-MM (default: current month)")
    recurring.add_argument("--user-id", type=int, default=None, help="Only this agency account (default: all)")
    recurring.set_defaults(func=generate_recurring)
    return parser


def main(argv=None) -> int:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
