"""Project catalog: creation, edits, visibility and listings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from bto_engine.domain import eligibility
from bto_engine.domain.enums import AssignmentStatus, FlatType, UserRole
from bto_engine.domain.errors import (
    DuplicateProject,
    InvalidRequest,
    NotAuthorized,
    ProjectInUse,
    ScheduleConflict,
)
from bto_engine.domain.inventory import InventoryLedger
from bto_engine.domain.models import Project, ProjectName, Registry, StaffSlots, User
from bto_engine.domain.rules_config import DEFAULT_RULES, RulesConfig
from bto_engine.domain.staffing import ensure_manager


@dataclass(slots=True)
class ProjectDraft:
    """Parameters required to open a new project."""

    name: str
    neighborhood: str
    opening_date: date
    closing_date: date
    units: dict[FlatType, int]
    prices: dict[FlatType, float] = field(default_factory=dict)
    officer_slots: int = 0
    visible: bool = False


@dataclass(slots=True)
class ProjectChanges:
    """Partial edit of an existing project; ``None`` leaves a field alone."""

    neighborhood: str | None = None
    opening_date: date | None = None
    closing_date: date | None = None
    officer_slots: int | None = None
    units: dict[FlatType, int] | None = None
    prices: dict[FlatType, float] | None = None


def is_open(project: Project, today: date) -> bool:
    """Visible and ``today`` falls inside the (inclusive) application window."""

    return project.visible and project.opening_date <= today <= project.closing_date


def windows_overlap(
    first_open: date, first_close: date, second_open: date, second_close: date
) -> bool:
    return not (second_close < first_open or second_open > first_close)


def create_project(
    registry: Registry,
    manager: User,
    draft: ProjectDraft,
    ledger: InventoryLedger,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Project:
    """Open a hidden-by-default project owned by ``manager``."""

    if manager.role != UserRole.MANAGER:
        raise NotAuthorized("only managers may create projects", user=manager.nric)
    name = ProjectName(draft.name.strip())
    if not name:
        raise InvalidRequest("project name is required")
    if name in registry.projects:
        raise DuplicateProject("a project with this name already exists", project=name)
    _validate_window(draft.opening_date, draft.closing_date, project=name)
    _validate_slots(draft.officer_slots, rules, project=name)
    _ensure_no_overlap(registry, manager, draft.opening_date, draft.closing_date)

    project = Project(
        name=name,
        neighborhood=draft.neighborhood,
        opening_date=draft.opening_date,
        closing_date=draft.closing_date,
        manager_id=manager.nric,
        prices=dict(draft.prices),
        staff_slots=StaffSlots(max_slots=draft.officer_slots),
        visible=draft.visible,
    )
    for flat_type, units in draft.units.items():
        ledger.restock(project, flat_type, units)
    registry.projects[project.name] = project
    return project


def update_project(
    registry: Registry,
    manager: User,
    project: Project,
    changes: ProjectChanges,
    ledger: InventoryLedger,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Project:
    """Apply ``changes``; validation happens before anything is written."""

    ensure_manager(manager, project)
    opening = changes.opening_date or project.opening_date
    closing = changes.closing_date or project.closing_date
    _validate_window(opening, closing, project=project.name)
    if changes.opening_date is not None or changes.closing_date is not None:
        _ensure_no_overlap(registry, manager, opening, closing, exclude=project.name)
    if changes.officer_slots is not None:
        _validate_slots(changes.officer_slots, rules, project=project.name)
    if changes.units is not None and any(units < 0 for units in changes.units.values()):
        raise InvalidRequest("unit count cannot be negative", project=project.name)

    if changes.officer_slots is not None:
        ledger.resize_officer_slots(project, changes.officer_slots)
    if changes.neighborhood is not None:
        project.neighborhood = changes.neighborhood
    project.opening_date = opening
    project.closing_date = closing
    if changes.units is not None:
        for flat_type, units in changes.units.items():
            ledger.restock(project, flat_type, units)
    if changes.prices is not None:
        project.prices.update(changes.prices)
    return project


def delete_project(registry: Registry, manager: User, project: Project) -> Project:
    """Remove a project nobody has applied to."""

    ensure_manager(manager, project)
    if registry.applications_for(project.name):
        raise ProjectInUse("project has applications and cannot be deleted", project=project.name)
    for assignment_id, assignment in list(registry.assignments.items()):
        if assignment.project_name == project.name:
            del registry.assignments[assignment_id]
    for enquiry_id, enquiry in list(registry.enquiries.items()):
        if enquiry.project_name == project.name:
            del registry.enquiries[enquiry_id]
    del registry.projects[project.name]
    return project


def set_visibility(manager: User, project: Project, visible: bool) -> Project:
    ensure_manager(manager, project)
    project.visible = visible
    return project


def matches_filters(
    project: Project, *, neighborhood: str | None = None, flat_type: FlatType | None = None
) -> bool:
    """Neighborhood compares case-insensitively; a flat type must be offered."""

    if neighborhood is not None:
        if project.neighborhood.casefold() != neighborhood.strip().casefold():
            return False
    return flat_type is None or flat_type in project.units


def projects_visible_to(
    registry: Registry,
    user: User,
    *,
    neighborhood: str | None = None,
    flat_type: FlatType | None = None,
) -> list[Project]:
    """Projects ``user`` may look at, optionally narrowed by neighborhood or flat type.

    Managers see every project.  Everyone else sees visible projects plus
    projects they applied to or handle, whatever the visibility toggle says.
    """

    if user.role == UserRole.MANAGER:
        candidates = list(registry.projects.values())
    else:
        related: set[str] = {app.project_name for app in registry.applications_of(user.nric)}
        related.update(_handled_projects(registry, user))
        candidates = [p for p in registry.projects.values() if p.visible or p.name in related]
    return sorted(
        (
            p
            for p in candidates
            if matches_filters(p, neighborhood=neighborhood, flat_type=flat_type)
        ),
        key=lambda p: p.name,
    )


def open_projects_for(
    registry: Registry,
    user: User,
    today: date,
    *,
    neighborhood: str | None = None,
    flat_type: FlatType | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[Project]:
    """Projects ``user`` could apply to today.

    With ``flat_type`` only projects where the user may take that type and
    a unit of it remains are listed.
    """

    if not user.can_apply:
        return []
    allowed = eligibility.eligible_flat_types(user.age, user.marital_status, rules=rules)
    if flat_type is not None:
        allowed = allowed & {flat_type}
    handled = _handled_projects(registry, user)
    return sorted(
        (
            p
            for p in registry.projects.values()
            if is_open(p, today)
            and p.name not in handled
            and matches_filters(p, neighborhood=neighborhood)
            and any(p.units.get(t, 0) > 0 for t in allowed)
        ),
        key=lambda p: p.name,
    )


def managed_by(registry: Registry, manager: User) -> list[Project]:
    return sorted(
        (p for p in registry.projects.values() if p.manager_id == manager.nric),
        key=lambda p: p.name,
    )


def _handled_projects(registry: Registry, user: User) -> set[str]:
    return {
        assignment.project_name
        for assignment in list(registry.assignments.values())
        if assignment.officer_id == user.nric and assignment.status != AssignmentStatus.REJECTED
    }


def _validate_window(opening: date, closing: date, *, project: str) -> None:
    if closing < opening:
        raise InvalidRequest("closing date must not precede opening date", project=project)


def _validate_slots(slots: int, rules: RulesConfig, *, project: str) -> None:
    limit = rules.projects.max_officer_slots
    if not 0 <= slots <= limit:
        raise InvalidRequest(f"officer slots must be between 0 and {limit}", project=project)


def _ensure_no_overlap(
    registry: Registry,
    manager: User,
    opening: date,
    closing: date,
    *,
    exclude: str | None = None,
) -> None:
    for other in registry.projects.values():
        if other.manager_id != manager.nric or other.name == exclude:
            continue
        if windows_overlap(other.opening_date, other.closing_date, opening, closing):
            raise ScheduleConflict(
                "manager already runs a project in an overlapping application window",
                user=manager.nric,
                project=other.name,
            )
