"""SQLAlchemy-backed store for the allocation registry.

Each domain dataclass maps onto one table row.  Conversions are explicit
so the domain layer never sees ORM objects.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from bto_engine.domain import models as dm
from bto_engine.domain.enums import (
    ApplicationStatus,
    AssignmentStatus,
    FlatType,
    MaritalStatus,
    UserRole,
)
from bto_engine.interfaces.store import Entity
from bto_engine.models import (
    ApplicationRow,
    Base,
    EnquiryRow,
    ProjectRow,
    StaffAssignmentRow,
    UserRow,
)

logger = logging.getLogger(__name__)


# --- domain -> row ---------------------------------------------------------------


def user_to_row(user: dm.User) -> UserRow:
    state = user.applicant_state
    return UserRow(
        nric=user.nric,
        name=user.name,
        age=user.age,
        marital_status=user.marital_status.value,
        role=user.role.value,
        password_hash=user.password_hash,
        has_applicant_state=state is not None,
        active_application_id=state.active_application_id if state else None,
        booked_project=state.booked_project if state else None,
        booked_flat_type=(
            state.booked_flat_type.value if state and state.booked_flat_type else None
        ),
    )


def project_to_row(project: dm.Project) -> ProjectRow:
    return ProjectRow(
        name=project.name,
        neighborhood=project.neighborhood,
        opening_date=project.opening_date,
        closing_date=project.closing_date,
        manager_id=project.manager_id,
        units={flat_type.value: count for flat_type, count in project.units.items()},
        prices={flat_type.value: price for flat_type, price in project.prices.items()},
        max_officer_slots=project.staff_slots.max_slots,
        assigned_officers=list(project.staff_slots.assigned),
        visible=project.visible,
    )


def application_to_row(application: dm.Application) -> ApplicationRow:
    return ApplicationRow(
        id=application.id,
        applicant_id=application.applicant_id,
        project_name=application.project_name,
        flat_type=application.flat_type.value,
        submitted_on=application.submitted_on,
        status=application.status.value,
        booked_flat_type=(
            application.booked_flat_type.value if application.booked_flat_type else None
        ),
        booked_on=application.booked_on,
        withdrawal_requested=application.withdrawal_requested,
    )


def assignment_to_row(assignment: dm.StaffAssignment) -> StaffAssignmentRow:
    return StaffAssignmentRow(
        id=assignment.id,
        officer_id=assignment.officer_id,
        project_name=assignment.project_name,
        requested_on=assignment.requested_on,
        status=assignment.status.value,
    )


def enquiry_to_row(enquiry: dm.Enquiry) -> EnquiryRow:
    return EnquiryRow(
        id=enquiry.id,
        author_id=enquiry.author_id,
        project_name=enquiry.project_name,
        question=enquiry.question,
        submitted_on=enquiry.submitted_on,
        reply=enquiry.reply,
        replied_by=enquiry.replied_by,
        replied_on=enquiry.replied_on,
    )


# --- row -> domain ---------------------------------------------------------------


def row_to_user(row: UserRow) -> dm.User:
    state = None
    if row.has_applicant_state:
        state = dm.ApplicantState(
            active_application_id=(
                dm.ApplicationID(row.active_application_id)
                if row.active_application_id is not None
                else None
            ),
            booked_project=dm.ProjectName(row.booked_project) if row.booked_project else None,
            booked_flat_type=FlatType(row.booked_flat_type) if row.booked_flat_type else None,
        )
    return dm.User(
        nric=dm.UserID(row.nric),
        name=row.name,
        age=row.age,
        marital_status=MaritalStatus(row.marital_status),
        role=UserRole(row.role),
        password_hash=row.password_hash,
        applicant_state=state,
    )


def row_to_project(row: ProjectRow) -> dm.Project:
    return dm.Project(
        name=dm.ProjectName(row.name),
        neighborhood=row.neighborhood,
        opening_date=row.opening_date,
        closing_date=row.closing_date,
        manager_id=dm.UserID(row.manager_id),
        units={FlatType(key): int(count) for key, count in (row.units or {}).items()},
        prices={FlatType(key): float(price) for key, price in (row.prices or {}).items()},
        staff_slots=dm.StaffSlots(
            max_slots=row.max_officer_slots,
            assigned=[dm.UserID(nric) for nric in row.assigned_officers or []],
        ),
        visible=row.visible,
    )


def row_to_application(row: ApplicationRow) -> dm.Application:
    return dm.Application(
        id=dm.ApplicationID(row.id),
        applicant_id=dm.UserID(row.applicant_id),
        project_name=dm.ProjectName(row.project_name),
        flat_type=FlatType(row.flat_type),
        submitted_on=row.submitted_on,
        status=ApplicationStatus(row.status),
        booked_flat_type=FlatType(row.booked_flat_type) if row.booked_flat_type else None,
        booked_on=row.booked_on,
        withdrawal_requested=row.withdrawal_requested,
    )


def row_to_assignment(row: StaffAssignmentRow) -> dm.StaffAssignment:
    return dm.StaffAssignment(
        id=dm.AssignmentID(row.id),
        officer_id=dm.UserID(row.officer_id),
        project_name=dm.ProjectName(row.project_name),
        requested_on=row.requested_on,
        status=AssignmentStatus(row.status),
    )


def row_to_enquiry(row: EnquiryRow) -> dm.Enquiry:
    return dm.Enquiry(
        id=dm.EnquiryID(row.id),
        author_id=dm.UserID(row.author_id),
        project_name=dm.ProjectName(row.project_name),
        question=row.question,
        submitted_on=row.submitted_on,
        reply=row.reply,
        replied_by=dm.UserID(row.replied_by) if row.replied_by else None,
        replied_on=row.replied_on,
    )


def to_row(entity: Entity) -> Base:
    """Convert any supported domain entity into its ORM row."""
    if isinstance(entity, dm.User):
        return user_to_row(entity)
    if isinstance(entity, dm.Project):
        return project_to_row(entity)
    if isinstance(entity, dm.Application):
        return application_to_row(entity)
    if isinstance(entity, dm.StaffAssignment):
        return assignment_to_row(entity)
    if isinstance(entity, dm.Enquiry):
        return enquiry_to_row(entity)
    raise TypeError(f"unsupported entity type: {type(entity).__name__}")


class SqlRegistryStore:
    """Persist the registry into relational tables through SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def load_all(self) -> dm.Registry:
        registry = dm.Registry()
        with self._session_factory() as session:
            for row in session.scalars(select(UserRow)):
                user = row_to_user(row)
                registry.users[user.nric] = user
            for row in session.scalars(select(ProjectRow)):
                project = row_to_project(row)
                registry.projects[project.name] = project
            for row in session.scalars(select(ApplicationRow)):
                application = row_to_application(row)
                registry.applications[application.id] = application
            for row in session.scalars(select(StaffAssignmentRow)):
                assignment = row_to_assignment(row)
                registry.assignments[assignment.id] = assignment
            for row in session.scalars(select(EnquiryRow)):
                enquiry = row_to_enquiry(row)
                registry.enquiries[enquiry.id] = enquiry
        logger.debug(
            "loaded %d users, %d projects, %d applications from database",
            len(registry.users),
            len(registry.projects),
            len(registry.applications),
        )
        return registry

    def save(self, entity: Entity) -> None:
        row = to_row(entity)
        with self._session_factory() as session, session.begin():
            session.merge(row)

    def delete(self, entity: Entity) -> None:
        row = to_row(entity)
        with self._session_factory() as session, session.begin():
            identity = row.__mapper__.primary_key_from_instance(row)
            persisted = session.get(type(row), tuple(identity))
            if persisted is not None:
                session.delete(persisted)
