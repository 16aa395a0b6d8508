import argparse
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path

from content_auditor.adapters.clock import SystemClock
from content_auditor.adapters.memory import InMemoryQueue
from content_auditor.adapters.queue_file import JsonFileQueue
from content_auditor.adapters.sqlite_items import SQLiteItemRepo
from content_auditor.api.auth_utils import create_access_token
from content_auditor.api.deps import get_settings
from content_auditor.api.presenters import NO_TRIGGERS_NOTICE, format_age
from content_auditor.components.auditor import AuditorComponent, AuditReport
from content_auditor.components.classifier import ClassifiedItem
from content_auditor.domain.policy import policy_from_rules
from content_auditor.rules.loader import load_rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")

DB_PATH = "data/auditor.db"
RULES_PATH = "rules.yaml"


def print_report(report: AuditReport) -> None:
    health = report.queue_health
    print("Queue summary")
    if health.is_idle:
        print(f"  {NO_TRIGGERS_NOTICE}")
    else:
        print(f"  Pending publish triggers: {health.total_pending_triggers}")
        if health.next_trigger_at_utc is not None:
            print(f"  Next trigger due at: {health.next_trigger_at_utc.isoformat()}")

    for heading, rows in (("Late", report.late), ("Upcoming", report.upcoming)):
        print(f"\n{heading} ({len(rows)})")
        for ci in rows:
            item = ci.item
            print(
                f"  [{item.id}] {item.title or '(no title)'} "
                f"({item.type_tag}) {item.scheduled_at_utc.isoformat()} - {format_age(ci.lateness)}"
            )

    if report.advisories:
        print(f"\nAdvisories: {', '.join(report.advisories)}")


def report_to_dict(report: AuditReport) -> dict[str, object]:
    def rows(items: tuple[ClassifiedItem, ...]) -> list[dict[str, object]]:
        return [
            {
                "id": ci.item.id,
                "title": ci.item.title,
                "scheduled_at_utc": ci.item.scheduled_at_utc.isoformat(),
                "lateness_seconds": int(ci.lateness.total_seconds()),
            }
            for ci in items
        ]

    next_trigger = report.queue_health.next_trigger_at_utc
    return {
        "generated_at_utc": report.generated_at_utc.isoformat(),
        "late": rows(report.late),
        "upcoming": rows(report.upcoming),
        "queue_health": {
            "total_pending_triggers": report.queue_health.total_pending_triggers,
            "next_trigger_at_utc": next_trigger.isoformat() if next_trigger else None,
        },
        "advisories": list(report.advisories),
    }


def handle_audit(args: argparse.Namespace) -> int:
    rules_path = Path(args.rules)
    if not rules_path.exists():
        logger.error("Rules file %s not found.", rules_path)
        return 1
    if not Path(args.db).exists():
        logger.error("Database %s not found.", args.db)
        return 1

    policy = policy_from_rules(load_rules(rules_path))
    repo = SQLiteItemRepo(args.db)
    queue = JsonFileQueue(args.queue) if args.queue else InMemoryQueue()

    report = AuditorComponent(repo, queue, SystemClock(), policy).run()

    if args.json:
        print(json.dumps(report_to_dict(report), indent=2))
    else:
        print_report(report)

    # Non-zero exit lets cron wrappers alert on missed schedules
    return 2 if report.has_late_items else 0


def handle_token(args: argparse.Namespace) -> int:
    """Print an admin access token for the given operator and roles."""
    token = create_access_token(
        {"sub": args.operator, "roles": args.role},
        get_settings().secret_key,
        expires_delta=timedelta(minutes=args.minutes),
    )
    logger.info("Issued access token for %s (%s)", args.operator, ", ".join(args.role))
    print(token)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Scheduled Content Auditor CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    audit_parser = subparsers.add_parser("audit", help="List late and upcoming scheduled items")
    audit_parser.add_argument("--db", default=DB_PATH, help="SQLite item store path")
    audit_parser.add_argument("--rules", default=RULES_PATH, help="Rules file path")
    audit_parser.add_argument("--queue", default=None, help="JSON queue snapshot file")
    audit_parser.add_argument("--json", action="store_true", help="Emit JSON")

    token_parser = subparsers.add_parser("token", help="Issue an admin access token")
    token_parser.add_argument("operator", help="Operator id")
    token_parser.add_argument(
        "--role", action="append", required=True, help="Operator role (repeatable)"
    )
    token_parser.add_argument("--minutes", type=int, default=480, help="Token lifetime")

    args = parser.parse_args(argv)

    if args.command == "audit":
        return handle_audit(args)
    if args.command == "token":
        return handle_token(args)
    return 1


if __name__ == "__main__":
    sys.exit(main())
