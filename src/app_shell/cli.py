import argparse
import logging
import sys
from uuid import UUID

from src.adapters.auth.crypto import JWTAuthAdapter
from src.adapters.clock import SystemClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteCompanyRepo, SQLiteUserRepo
from src.adapters.sqlite.schedule_repos import SQLiteScheduleRepo
from src.api.deps import Settings
from src.components.auth import RegisterInput, run_register
from src.components.critical_path import analyze_schedule
from src.domain.cpm import CycleError
from src.rules.loader import load_rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")


def handle_migrate(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
    if applied:
        for name in applied:
            print(f"Applied {name}")
    else:
        print("Database is up to date.")


def handle_create_admin(settings: Settings, args: argparse.Namespace) -> None:
    rules = load_rules(settings.rules_path)
    result = run_register(
        RegisterInput(
            email=args.email,
            password=args.password,
            display_name=args.display_name or args.email.split("@")[0],
            company_name=args.company,
        ),
        user_repo=SQLiteUserRepo(settings.db_path),
        company_repo=SQLiteCompanyRepo(settings.db_path),
        auth_adapter=JWTAuthAdapter(),
        time=SystemClock(),
        password_min_length=rules.auth.password_min_length,
    )
    if not result.success or result.user is None or result.company is None:
        for e in result.errors:
            logger.error("%s: %s", e.code, e.message)
        sys.exit(1)
    print(f"Created owner {result.user.email} for company '{result.company.name}'")


def handle_critical_path(settings: Settings, args: argparse.Namespace) -> None:
    rules = load_rules(settings.rules_path)
    repo = SQLiteScheduleRepo(settings.db_path)
    try:
        schedule_id = UUID(args.schedule_id)
    except ValueError:
        logger.error("Invalid schedule id: %s", args.schedule_id)
        sys.exit(1)

    schedule = repo.get_by_id(schedule_id)
    if schedule is None:
        logger.error("Schedule %s not found.", schedule_id)
        sys.exit(1)

    try:
        report = analyze_schedule(
            schedule,
            repo.list_items(schedule.id),
            repo.list_dependencies(schedule.id),
            rules.scheduling,
        )
    except CycleError as e:
        logger.error("Cannot compute critical path: %s", e)
        sys.exit(1)

    print(f"{'Item':<32} {'ES':>10} {'EF':>10} {'LS':>10} {'LF':>10} {'TF':>5}  Crit")
    for t in report.items:
        print(
            f"{t.name[:32]:<32} {t.early_start_date!s:>10} {t.early_finish_date!s:>10} "
            f"{t.late_start_date!s:>10} {t.late_finish_date!s:>10} {t.total_float:>5g}  "
            f"{'*' if t.is_critical else ''}"
        )
    print(
        f"Critical path: {report.critical_path_length:g} days "
        f"({report.critical_path_percentage:.1f}% of schedule window)"
    )
    if report.forecast_finish_date is not None:
        print(f"Forecast finish: {report.forecast_finish_date}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="ConstructX CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply pending database migrations")

    admin_parser = subparsers.add_parser("create-admin", help="Create a company and its owner")
    admin_parser.add_argument("--email", required=True)
    admin_parser.add_argument("--password", required=True)
    admin_parser.add_argument("--company", required=True, help="Company name")
    admin_parser.add_argument("--display-name", default=None)

    cpm_parser = subparsers.add_parser("critical-path", help="Print the CPM table of a schedule")
    cpm_parser.add_argument("schedule_id")

    args = parser.parse_args(argv)
    settings = Settings()

    if args.command == "migrate":
        handle_migrate(settings)
    elif args.command == "create-admin":
        handle_create_admin(settings, args)
    elif args.command == "critical-path":
        handle_critical_path(settings, args)


if __name__ == "__main__":
    main()
