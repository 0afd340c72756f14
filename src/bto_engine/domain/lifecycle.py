"""Application state machine.

::

    PENDING --approve--> SUCCESSFUL --book--> BOOKED
    PENDING --reject---> UNSUCCESSFUL
    SUCCESSFUL --reject--> UNSUCCESSFUL

Units are reserved at booking time, not at approval, so approved
applications that never convert do not hold stock.  Withdrawal is layered
on top in :mod:`bto_engine.domain.withdrawal`.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from bto_engine.domain import eligibility, projects
from bto_engine.domain.enums import ApplicationStatus, AssignmentStatus, FlatType
from bto_engine.domain.errors import (
    ConflictingApplicantRole,
    DuplicateApplication,
    InvalidTransition,
    NoInventory,
    NotAuthorized,
    NotFound,
    WindowClosed,
)
from bto_engine.domain.inventory import InventoryLedger
from bto_engine.domain.models import Application, Project, Receipt, Registry, User, UserID
from bto_engine.domain.rules_config import DEFAULT_RULES, RulesConfig
from bto_engine.domain.staffing import StaffAssignmentWorkflow, ensure_manager
from bto_engine.utils.locks import applicant_key, application_key, project_key, sequence_key


class ApplicationLifecycle:
    """Submit, approve, reject and book applications."""

    def __init__(
        self,
        registry: Registry,
        ledger: InventoryLedger,
        staffing: StaffAssignmentWorkflow,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self._registry = registry
        self._ledger = ledger
        self._staffing = staffing
        self._rules = rules
        self._clock = clock

    def active_application(self, applicant_id: UserID) -> Application | None:
        for application in self._registry.applications_of(applicant_id):
            if application.is_active:
                return application
        return None

    def project_of(self, application: Application) -> Project:
        project = self._registry.projects.get(application.project_name)
        if project is None:
            raise NotFound("project not found", project=application.project_name)
        return project

    def applicant_of(self, application: Application) -> User:
        applicant = self._registry.users.get(application.applicant_id)
        if applicant is None:
            raise NotFound("applicant not found", user=application.applicant_id)
        return applicant

    # --- Transitions --------------------------------------------------------------

    def submit(self, applicant: User, project: Project, flat_type: FlatType) -> Application:
        """Create a PENDING application; inventory is not touched yet."""

        if not applicant.can_apply:
            raise NotAuthorized("user has no applicant capability", user=applicant.nric)

        with self._ledger.locks.hold(applicant_key(applicant.nric), project_key(project.name)):
            existing = self.active_application(applicant.nric)
            if existing is not None:
                raise DuplicateApplication(
                    "applicant already has an active application",
                    user=applicant.nric,
                    application=existing.id,
                )

            assignment = self._staffing.assignment_for(applicant.nric)
            if (
                assignment is not None
                and assignment.project_name == project.name
                and assignment.status != AssignmentStatus.REJECTED
            ):
                raise ConflictingApplicantRole(
                    "officer is registered to handle this project",
                    user=applicant.nric,
                    project=project.name,
                    assignment=assignment.id,
                )

            eligibility.ensure_eligible(applicant, flat_type, rules=self._rules)

            today = self._clock()
            if not projects.is_open(project, today):
                raise WindowClosed(
                    "project is not open for applications",
                    project=project.name,
                    today=today.isoformat(),
                )
            if not self._ledger.has_units(project, flat_type):
                raise NoInventory(
                    "no units of this flat type remain",
                    project=project.name,
                    flat_type=flat_type,
                )

            with self._ledger.locks.hold(sequence_key("applications")):
                application = Application(
                    id=self._registry.next_application_id(),
                    applicant_id=applicant.nric,
                    project_name=project.name,
                    flat_type=flat_type,
                    submitted_on=today,
                )
                self._registry.applications[application.id] = application
            if applicant.applicant_state is not None:
                applicant.applicant_state.active_application_id = application.id
        return application

    def approve(self, application: Application, manager: User) -> Application:
        """PENDING -> SUCCESSFUL after re-checking eligibility and stock."""

        project = self.project_of(application)
        ensure_manager(manager, project)
        with self._ledger.locks.hold(application_key(application.id), project_key(project.name)):
            if application.status != ApplicationStatus.PENDING:
                raise InvalidTransition(
                    f"cannot approve a {application.status} application",
                    application=application.id,
                )
            eligibility.ensure_eligible(
                self.applicant_of(application), application.flat_type, rules=self._rules
            )
            if not self._ledger.has_units(project, application.flat_type):
                raise NoInventory(
                    "no units of this flat type remain",
                    project=project.name,
                    flat_type=application.flat_type,
                    application=application.id,
                )
            application.status = ApplicationStatus.SUCCESSFUL
        return application

    def reject(self, application: Application, manager: User) -> Application:
        """PENDING or SUCCESSFUL -> UNSUCCESSFUL."""

        project = self.project_of(application)
        ensure_manager(manager, project)
        with self._ledger.locks.hold(application_key(application.id)):
            if application.status not in (
                ApplicationStatus.PENDING,
                ApplicationStatus.SUCCESSFUL,
            ):
                raise InvalidTransition(
                    f"cannot reject a {application.status} application",
                    application=application.id,
                )
            application.status = ApplicationStatus.UNSUCCESSFUL
            application.withdrawal_requested = False
            self._clear_active_reference(application)
        return application

    def book(
        self,
        application: Application,
        flat_type: FlatType | None,
        staff: User,
    ) -> Application:
        """SUCCESSFUL -> BOOKED, taking one unit from the ledger.

        Either the unit is taken and the status advances, or neither happens.
        ``flat_type`` defaults to the type requested at submission.
        """

        project = self.project_of(application)
        self._staffing.ensure_authorized(staff, project)
        with self._ledger.locks.hold(application_key(application.id), project_key(project.name)):
            if application.status != ApplicationStatus.SUCCESSFUL:
                raise InvalidTransition(
                    f"cannot book a {application.status} application",
                    application=application.id,
                )
            chosen = flat_type or application.flat_type
            applicant = self.applicant_of(application)
            eligibility.ensure_eligible(applicant, chosen, rules=self._rules)
            if not self._ledger.decrement(project, chosen):
                raise NoInventory(
                    "no units of this flat type remain",
                    project=project.name,
                    flat_type=chosen,
                    application=application.id,
                )
            application.status = ApplicationStatus.BOOKED
            application.booked_flat_type = chosen
            application.booked_on = self._clock()
            if applicant.applicant_state is not None:
                applicant.applicant_state.booked_project = project.name
                applicant.applicant_state.booked_flat_type = chosen
        return application

    def receipt(self, application: Application, staff: User) -> Receipt:
        """Booking confirmation for a BOOKED application."""

        project = self.project_of(application)
        if not self._staffing.can_administer(staff, project):
            raise NotAuthorized(
                "only project staff may issue receipts",
                user=staff.nric,
                project=project.name,
            )
        if application.status != ApplicationStatus.BOOKED or application.booked_flat_type is None:
            raise InvalidTransition(
                "receipts are only issued for booked applications",
                application=application.id,
            )
        applicant = self.applicant_of(application)
        flat_type = application.booked_flat_type
        return Receipt(
            receipt_id=f"RCPT-{int(application.id):06d}",
            application_id=application.id,
            applicant_name=applicant.name,
            applicant_nric=applicant.nric,
            applicant_age=applicant.age,
            marital_status=applicant.marital_status,
            project_name=project.name,
            neighborhood=project.neighborhood,
            flat_type=flat_type,
            price=project.prices.get(flat_type),
            booked_on=application.booked_on or self._clock(),
        )

    def _clear_active_reference(self, application: Application) -> None:
        applicant = self._registry.users.get(application.applicant_id)
        if applicant is None or applicant.applicant_state is None:
            return
        if applicant.applicant_state.active_application_id == application.id:
            applicant.applicant_state.active_application_id = None
