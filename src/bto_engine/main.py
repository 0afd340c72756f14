"""Command-line entry point for inspecting and seeding the allocation store."""

from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from bto_engine.config import get_settings
from bto_engine.domain.enums import FlatType, MaritalStatus, UserRole
from bto_engine.domain.errors import EngineError
from bto_engine.domain.reporting import Report
from bto_engine.factory import create_services
from bto_engine.interfaces import IAuthenticator
from bto_engine.schemas import ProjectCreate, ReportQuery, UserCreate

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="BTO allocation engine tools")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("summary", help="Print entity counts of the configured store")

    report = sub.add_parser("report", help="Print an applications report")
    report.add_argument("--project", dest="project_name", help="Project name (any case)")
    report.add_argument("--flat-type", choices=[t.value for t in FlatType])
    report.add_argument("--marital-status", choices=[m.value for m in MaritalStatus])
    report.add_argument("--min-age", type=int)
    report.add_argument("--max-age", type=int)
    report.add_argument("--booked", action="store_true", help="Only booked flats")

    add_user = sub.add_parser("add-user", help="Create an account")
    add_user.add_argument("nric")
    add_user.add_argument("name")
    add_user.add_argument("age", type=int)
    add_user.add_argument("marital_status", choices=[m.value for m in MaritalStatus])
    add_user.add_argument(
        "--role", default=UserRole.APPLICANT.value, choices=[r.value for r in UserRole]
    )
    add_user.add_argument("--password", help="Initial password (defaults from settings)")

    passwd = sub.add_parser("change-password", help="Change an account password")
    passwd.add_argument("nric")
    passwd.add_argument("old")
    passwd.add_argument("new")

    add_project = sub.add_parser("add-project", help="Create a project from a JSON file")
    add_project.add_argument("manager", help="NRIC of the manager in charge")
    add_project.add_argument("file", type=Path, help="JSON document with the project fields")
    return parser


def change_password(auth: IAuthenticator, nric: str, old: str, new: str) -> bool:
    """Log in with ``old`` and switch to ``new``."""
    user = auth.authenticate(nric, old)
    return auth.change_credential(user, old, new)


def format_report(report: Report) -> str:
    lines = [report.title, "=" * len(report.title)]
    for row in report.rows:
        lines.append(
            f"#{row.application_id:<4} {row.applicant_name or row.applicant_id:<20} "
            f"{row.age if row.age is not None else '-':>3} "
            f"{row.marital_status or '-':<8} {row.project_name:<20} {row.flat_type:<7} {row.status}"
        )
    stats = report.statistics
    lines.append(f"Total: {stats.total}")
    for label, counts in (
        ("By flat type", stats.by_flat_type),
        ("By marital status", stats.by_marital_status),
        ("By project", stats.by_project),
    ):
        if counts:
            lines.append(f"{label}: " + ", ".join(f"{k}={v}" for k, v in sorted(counts.items())))
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    allocation, auth = create_services(settings)
    logger.debug("using the %s store backend", settings.store_backend)

    try:
        if args.command == "summary":
            registry = allocation.registry
            statuses = Counter(str(app.status) for app in registry.applications.values())
            print(f"users: {len(registry.users)}")
            print(f"projects: {len(registry.projects)}")
            print(f"applications: {len(registry.applications)}")
            for status, count in sorted(statuses.items()):
                print(f"  {status}: {count}")
            print(f"staff assignments: {len(registry.assignments)}")
            print(f"enquiries: {len(registry.enquiries)}")
        elif args.command == "report":
            criteria = ReportQuery(
                project_name=args.project_name,
                flat_type=args.flat_type,
                marital_status=args.marital_status,
                min_age=args.min_age,
                max_age=args.max_age,
            ).to_criteria()
            if args.booked:
                print(format_report(allocation.booked_flats_report(criteria)))
            else:
                print(format_report(allocation.applications_report(criteria)))
        elif args.command == "add-user":
            user = auth.create_user(
                UserCreate(
                    nric=args.nric,
                    name=args.name,
                    age=args.age,
                    marital_status=args.marital_status,
                    role=args.role,
                    password=args.password,
                )
            )
            print(f"created {user.role} {user.nric}")
        elif args.command == "change-password":
            change_password(auth, args.nric, args.old, args.new)
            print(f"password changed for {args.nric}")
        elif args.command == "add-project":
            data = ProjectCreate.model_validate_json(args.file.read_text(encoding="utf-8"))
            project = allocation.create_project(args.manager, data.to_draft())
            print(f"created project {project.name}")
    except ValidationError as exc:
        print(f"invalid input: {exc}", file=sys.stderr)
        return 2
    except EngineError as exc:
        print(f"error [{exc.kind}]: {exc.detail}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
