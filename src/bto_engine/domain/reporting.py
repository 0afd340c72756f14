"""Read-only filtering and statistics over applications.

Criteria are turned into a list of small predicates that must all hold;
an empty :class:`ReportCriteria` therefore selects everything.  Nothing in
this module mutates its inputs.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace

from bto_engine.domain.enums import ApplicationStatus, FlatType, MaritalStatus
from bto_engine.domain.models import Application, ApplicationID, User, UserID

Predicate = Callable[[Application, User | None], bool]


@dataclass(frozen=True, slots=True)
class ReportCriteria:
    """Optional filters; ``None`` means "do not filter on this"."""

    project_name: str | None = None
    flat_type: FlatType | None = None
    marital_status: MaritalStatus | None = None
    min_age: int | None = None
    max_age: int | None = None
    statuses: frozenset[ApplicationStatus] | None = None


@dataclass(frozen=True, slots=True)
class ReportRow:
    application_id: ApplicationID
    applicant_id: UserID
    applicant_name: str | None
    age: int | None
    marital_status: MaritalStatus | None
    project_name: str
    flat_type: FlatType
    status: ApplicationStatus


@dataclass(slots=True)
class ReportStatistics:
    """Counts per category over the selected rows."""

    total: int = 0
    by_flat_type: dict[str, int] = field(default_factory=dict)
    by_marital_status: dict[str, int] = field(default_factory=dict)
    by_project: dict[str, int] = field(default_factory=dict)
    by_status: dict[str, int] = field(default_factory=dict)
    # project -> "<flat type>/<marital status>" -> count
    by_project_breakdown: dict[str, dict[str, int]] = field(default_factory=dict)


@dataclass(slots=True)
class Report:
    title: str
    criteria: ReportCriteria
    rows: list[ReportRow]
    statistics: ReportStatistics


def effective_flat_type(application: Application) -> FlatType:
    """The booked flat type once booked, otherwise the requested one."""

    if application.status == ApplicationStatus.BOOKED and application.booked_flat_type:
        return application.booked_flat_type
    return application.flat_type


def build_predicates(criteria: ReportCriteria) -> list[Predicate]:
    predicates: list[Predicate] = []

    if criteria.project_name:
        wanted = criteria.project_name.strip().casefold()
        predicates.append(lambda app, _user: app.project_name.casefold() == wanted)
    if criteria.flat_type is not None:
        flat_type = criteria.flat_type
        predicates.append(lambda app, _user: effective_flat_type(app) == flat_type)
    if criteria.statuses:
        statuses = criteria.statuses
        predicates.append(lambda app, _user: app.status in statuses)
    if criteria.marital_status is not None:
        marital = criteria.marital_status
        predicates.append(lambda _app, user: user is not None and user.marital_status == marital)
    if criteria.min_age is not None:
        min_age = criteria.min_age
        predicates.append(lambda _app, user: user is not None and user.age >= min_age)
    if criteria.max_age is not None:
        max_age = criteria.max_age
        predicates.append(lambda _app, user: user is not None and user.age <= max_age)
    return predicates


def filter_applications(
    applications: Iterable[Application],
    users: Mapping[UserID, User],
    criteria: ReportCriteria,
) -> list[Application]:
    predicates = build_predicates(criteria)
    selected = []
    for application in applications:
        user = users.get(application.applicant_id)
        if all(predicate(application, user) for predicate in predicates):
            selected.append(application)
    return sorted(selected, key=lambda app: app.id)


def summarize(rows: Iterable[ReportRow]) -> ReportStatistics:
    by_flat: Counter[str] = Counter()
    by_marital: Counter[str] = Counter()
    by_project: Counter[str] = Counter()
    by_status: Counter[str] = Counter()
    breakdown: dict[str, Counter[str]] = {}
    total = 0
    for row in rows:
        total += 1
        marital = str(row.marital_status) if row.marital_status else "unknown"
        by_flat[str(row.flat_type)] += 1
        by_marital[marital] += 1
        by_project[row.project_name] += 1
        by_status[str(row.status)] += 1
        breakdown.setdefault(row.project_name, Counter())[f"{row.flat_type}/{marital}"] += 1
    return ReportStatistics(
        total=total,
        by_flat_type=dict(by_flat),
        by_marital_status=dict(by_marital),
        by_project=dict(by_project),
        by_status=dict(by_status),
        by_project_breakdown={project: dict(counts) for project, counts in breakdown.items()},
    )


def report_title(criteria: ReportCriteria, *, base: str = "Applications Report") -> str:
    parts: list[str] = []
    if criteria.project_name:
        parts.append(f"Project: {criteria.project_name}")
    if criteria.flat_type is not None:
        parts.append(f"Flat Type: {criteria.flat_type}")
    if criteria.marital_status is not None:
        parts.append(str(criteria.marital_status).capitalize())
    if criteria.min_age is not None:
        parts.append(f"Min Age: {criteria.min_age}")
    if criteria.max_age is not None:
        parts.append(f"Max Age: {criteria.max_age}")
    if criteria.statuses:
        parts.append("Status: " + "/".join(sorted(str(s) for s in criteria.statuses)))
    if not parts:
        return base
    return f"{base} ({', '.join(parts)})"


def build_report(
    applications: Iterable[Application],
    users: Mapping[UserID, User],
    criteria: ReportCriteria | None = None,
    *,
    title: str = "Applications Report",
) -> Report:
    criteria = criteria or ReportCriteria()
    rows = []
    for application in filter_applications(applications, users, criteria):
        user = users.get(application.applicant_id)
        rows.append(
            ReportRow(
                application_id=application.id,
                applicant_id=application.applicant_id,
                applicant_name=user.name if user else None,
                age=user.age if user else None,
                marital_status=user.marital_status if user else None,
                project_name=application.project_name,
                flat_type=effective_flat_type(application),
                status=application.status,
            )
        )
    return Report(
        title=report_title(criteria, base=title),
        criteria=criteria,
        rows=rows,
        statistics=summarize(rows),
    )


def booking_report(
    applications: Iterable[Application],
    users: Mapping[UserID, User],
    criteria: ReportCriteria | None = None,
) -> Report:
    """Report restricted to booked flats."""

    booked = replace(criteria or ReportCriteria(), statuses=frozenset({ApplicationStatus.BOOKED}))
    return build_report(applications, users, booked, title="Booked Flats Report")
