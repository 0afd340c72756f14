"""Dataclasses describing every allocation entity.

The rules layer operates purely on these in-memory records.  Store
adapters translate between them and the underlying storage (a JSON
snapshot or SQLAlchemy tables); nothing in :mod:`bto_engine.domain`
touches storage directly.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import NewType

from .enums import (
    APPLICANT_ROLES,
    ApplicationStatus,
    AssignmentStatus,
    FlatType,
    MaritalStatus,
    UserRole,
)

# --- Strongly typed identifiers -------------------------------------------------

UserID = NewType("UserID", str)
ProjectName = NewType("ProjectName", str)
ApplicationID = NewType("ApplicationID", int)
AssignmentID = NewType("AssignmentID", int)
EnquiryID = NewType("EnquiryID", int)


# --- Core dataclasses -----------------------------------------------------------


@dataclass(slots=True)
class ApplicantState:
    """Applicant capability payload carried by applicants and officers."""

    active_application_id: ApplicationID | None = None
    booked_project: ProjectName | None = None
    booked_flat_type: FlatType | None = None


@dataclass(slots=True)
class User:
    """Account holder with a fixed role."""

    nric: UserID
    name: str
    age: int
    marital_status: MaritalStatus
    role: UserRole
    password_hash: str
    applicant_state: ApplicantState | None = None

    @property
    def can_apply(self) -> bool:
        return self.role in APPLICANT_ROLES and self.applicant_state is not None

    @property
    def is_married(self) -> bool:
        return self.marital_status == MaritalStatus.MARRIED


@dataclass(slots=True)
class StaffSlots:
    """Bounded officer capacity of a project."""

    max_slots: int
    assigned: list[UserID] = field(default_factory=list)


@dataclass(slots=True)
class Project:
    """Housing project with its application window and unit stock.

    ``units`` is written only through :class:`~bto_engine.domain.inventory.InventoryLedger`.
    """

    name: ProjectName
    neighborhood: str
    opening_date: date
    closing_date: date
    manager_id: UserID
    units: dict[FlatType, int] = field(default_factory=dict)
    prices: dict[FlatType, float] = field(default_factory=dict)
    staff_slots: StaffSlots = field(default_factory=lambda: StaffSlots(max_slots=0))
    visible: bool = False


@dataclass(slots=True, frozen=True)
class ProjectView:
    """Read-only copy of a project for callers outside the engine.

    ``units`` and ``prices`` are read-only mappings detached from the live
    project, so stock can only change through the ledger.
    """

    name: ProjectName
    neighborhood: str
    opening_date: date
    closing_date: date
    manager_id: UserID
    units: Mapping[FlatType, int]
    prices: Mapping[FlatType, float]
    max_officer_slots: int
    assigned_officers: tuple[UserID, ...]
    visible: bool


@dataclass(slots=True)
class Application:
    """An applicant's request for one flat type in one project."""

    id: ApplicationID
    applicant_id: UserID
    project_name: ProjectName
    flat_type: FlatType
    submitted_on: date
    status: ApplicationStatus = ApplicationStatus.PENDING
    booked_flat_type: FlatType | None = None
    booked_on: date | None = None
    withdrawal_requested: bool = False

    @property
    def is_active(self) -> bool:
        return self.status != ApplicationStatus.UNSUCCESSFUL


@dataclass(slots=True)
class StaffAssignment:
    """Officer registration to administer a project."""

    id: AssignmentID
    officer_id: UserID
    project_name: ProjectName
    requested_on: date
    status: AssignmentStatus = AssignmentStatus.PENDING


@dataclass(slots=True)
class Enquiry:
    """Free-text question about a project and its optional reply."""

    id: EnquiryID
    author_id: UserID
    project_name: ProjectName
    question: str
    submitted_on: date
    reply: str | None = None
    replied_by: UserID | None = None
    replied_on: date | None = None

    @property
    def is_answered(self) -> bool:
        return bool(self.reply and self.reply.strip())


@dataclass(slots=True, frozen=True)
class Receipt:
    """Booking confirmation handed to a successful applicant."""

    receipt_id: str
    application_id: ApplicationID
    applicant_name: str
    applicant_nric: UserID
    applicant_age: int
    marital_status: MaritalStatus
    project_name: ProjectName
    neighborhood: str
    flat_type: FlatType
    price: float | None
    booked_on: date


@dataclass(slots=True)
class Registry:
    """Root aggregate holding every entity known to the engine."""

    users: dict[UserID, User] = field(default_factory=dict)
    projects: dict[ProjectName, Project] = field(default_factory=dict)
    applications: dict[ApplicationID, Application] = field(default_factory=dict)
    assignments: dict[AssignmentID, StaffAssignment] = field(default_factory=dict)
    enquiries: dict[EnquiryID, Enquiry] = field(default_factory=dict)

    def applications_of(self, applicant_id: UserID) -> list[Application]:
        return [app for app in list(self.applications.values()) if app.applicant_id == applicant_id]

    def applications_for(self, project_name: ProjectName) -> list[Application]:
        return [app for app in list(self.applications.values()) if app.project_name == project_name]

    def next_application_id(self) -> ApplicationID:
        return ApplicationID(max(self.applications, default=0) + 1)

    def next_assignment_id(self) -> AssignmentID:
        return AssignmentID(max(self.assignments, default=0) + 1)

    def next_enquiry_id(self) -> EnquiryID:
        return EnquiryID(max(self.enquiries, default=0) + 1)
