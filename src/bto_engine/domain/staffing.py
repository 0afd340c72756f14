"""Officer registration for projects and the authorization it grants."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from bto_engine.domain.enums import AssignmentStatus, UserRole
from bto_engine.domain.errors import (
    AlreadyAssigned,
    ConflictingApplicantRole,
    InvalidTransition,
    NoSlots,
    NotAuthorized,
    NotFound,
)
from bto_engine.domain.inventory import InventoryLedger
from bto_engine.domain.models import Project, Registry, StaffAssignment, User
from bto_engine.utils.locks import applicant_key, assignment_key, project_key, sequence_key


def ensure_manager(user: User, project: Project) -> None:
    """Raise :class:`NotAuthorized` unless ``user`` owns ``project``."""

    if user.role != UserRole.MANAGER or user.nric != project.manager_id:
        raise NotAuthorized(
            "only the project's manager in charge may do this",
            user=user.nric,
            project=project.name,
        )


class StaffAssignmentWorkflow:
    """Register officers, arbitrate registrations, answer "who may act here"."""

    def __init__(
        self,
        registry: Registry,
        ledger: InventoryLedger,
        *,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._registry = registry
        self._ledger = ledger
        self._clock = clock

    # --- Queries ----------------------------------------------------------------

    def assignment_for(self, officer_id: str) -> StaffAssignment | None:
        """Return the officer's current (non-rejected) assignment, if any."""

        for assignment in list(self._registry.assignments.values()):
            if (
                assignment.officer_id == officer_id
                and assignment.status != AssignmentStatus.REJECTED
            ):
                return assignment
        return None

    def assignments_for_project(self, project: Project) -> list[StaffAssignment]:
        return [
            assignment
            for assignment in list(self._registry.assignments.values())
            if assignment.project_name == project.name
        ]

    def is_authorized(self, user: User, project: Project) -> bool:
        """True when ``user`` is an approved officer of ``project``."""

        if user.role != UserRole.OFFICER:
            return False
        assignment = self.assignment_for(user.nric)
        return (
            assignment is not None
            and assignment.project_name == project.name
            and assignment.status == AssignmentStatus.APPROVED
        )

    def can_administer(self, user: User, project: Project) -> bool:
        return self.is_authorized(user, project) or (
            user.role == UserRole.MANAGER and user.nric == project.manager_id
        )

    def ensure_authorized(self, user: User, project: Project) -> None:
        if not self.is_authorized(user, project):
            raise NotAuthorized(
                "officer is not approved for this project",
                user=user.nric,
                project=project.name,
            )

    # --- Transitions --------------------------------------------------------------

    def register(self, officer: User, project: Project) -> StaffAssignment:
        """Create a PENDING registration of ``officer`` for ``project``."""

        if officer.role != UserRole.OFFICER:
            raise NotAuthorized("only officers may register for projects", user=officer.nric)

        with self._ledger.locks.hold(applicant_key(officer.nric), project_key(project.name)):
            existing = self.assignment_for(officer.nric)
            if existing is not None:
                raise AlreadyAssigned(
                    "officer already has a registration in progress or approved",
                    user=officer.nric,
                    assignment=existing.id,
                    project=existing.project_name,
                )

            for application in self._registry.applications_of(officer.nric):
                if application.project_name == project.name and application.is_active:
                    raise ConflictingApplicantRole(
                        "officer has an active application for this project",
                        user=officer.nric,
                        project=project.name,
                        application=application.id,
                    )

            if self._ledger.remaining_officer_slots(project) <= 0:
                raise NoSlots("no officer slots remain", project=project.name)

            with self._ledger.locks.hold(sequence_key("assignments")):
                assignment = StaffAssignment(
                    id=self._registry.next_assignment_id(),
                    officer_id=officer.nric,
                    project_name=project.name,
                    requested_on=self._clock(),
                )
                self._registry.assignments[assignment.id] = assignment
        return assignment

    def approve(self, assignment: StaffAssignment, manager: User) -> StaffAssignment:
        """Consume a slot and mark the registration APPROVED, or neither."""

        project = self._project_of(assignment)
        ensure_manager(manager, project)
        with self._ledger.locks.hold(assignment_key(assignment.id), project_key(project.name)):
            self._ensure_pending(assignment)
            if not self._ledger.assign_officer(project, assignment.officer_id):
                raise NoSlots(
                    "no officer slots remain",
                    project=project.name,
                    assignment=assignment.id,
                )
            assignment.status = AssignmentStatus.APPROVED
        return assignment

    def reject(self, assignment: StaffAssignment, manager: User) -> StaffAssignment:
        project = self._project_of(assignment)
        ensure_manager(manager, project)
        with self._ledger.locks.hold(assignment_key(assignment.id)):
            self._ensure_pending(assignment)
            assignment.status = AssignmentStatus.REJECTED
        return assignment

    def revoke(self, assignment: StaffAssignment, manager: User) -> StaffAssignment:
        """Remove an approved officer from the project and free the slot."""

        project = self._project_of(assignment)
        ensure_manager(manager, project)
        with self._ledger.locks.hold(assignment_key(assignment.id), project_key(project.name)):
            if assignment.status != AssignmentStatus.APPROVED:
                raise InvalidTransition(
                    f"cannot revoke a {assignment.status} registration",
                    assignment=assignment.id,
                )
            self._ledger.release_officer(project, assignment.officer_id)
            assignment.status = AssignmentStatus.REJECTED
        return assignment

    # --- Helpers ----------------------------------------------------------------

    def _project_of(self, assignment: StaffAssignment) -> Project:
        project = self._registry.projects.get(assignment.project_name)
        if project is None:
            raise NotFound("project not found", project=assignment.project_name)
        return project

    @staticmethod
    def _ensure_pending(assignment: StaffAssignment) -> None:
        if assignment.status != AssignmentStatus.PENDING:
            raise InvalidTransition(
                f"registration is already {assignment.status}",
                assignment=assignment.id,
            )
