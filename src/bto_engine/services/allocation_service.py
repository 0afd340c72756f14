"""Allocation service: the single entry point front ends talk to.

The service owns the in-memory :class:`~bto_engine.domain.models.Registry`,
resolves identifiers into entities, delegates every rule to the domain
workflows and writes the touched entities back through the store once the
domain call has returned (and released its locks).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date
from types import MappingProxyType

from pydantic_core import PydanticSerializationError
from sqlalchemy.exc import SQLAlchemyError

from bto_engine.domain import models as dm
from bto_engine.domain import projects, reporting
from bto_engine.domain.enquiries import EnquiryDesk
from bto_engine.domain.enums import FlatType
from bto_engine.domain.errors import EngineError, NotFound, PersistenceError
from bto_engine.domain.inventory import InventoryLedger
from bto_engine.domain.lifecycle import ApplicationLifecycle
from bto_engine.domain.rules_config import DEFAULT_RULES, RulesConfig
from bto_engine.domain.staffing import StaffAssignmentWorkflow
from bto_engine.domain.withdrawal import WithdrawalWorkflow
from bto_engine.interfaces.store import Entity, IRegistryStore
from bto_engine.utils.locks import KeyedLocks, project_key

logger = logging.getLogger(__name__)


class AllocationService:
    """Facade over the allocation workflows backed by a registry store."""

    def __init__(
        self,
        store: IRegistryStore,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        clock: Callable[[], date] = date.today,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._store = store
        self._rules = rules
        self._clock = clock
        self.registry = store.load_all()
        self.ledger = InventoryLedger(locks)
        self.staffing = StaffAssignmentWorkflow(self.registry, self.ledger, clock=clock)
        self.lifecycle = ApplicationLifecycle(
            self.registry, self.ledger, self.staffing, rules=rules, clock=clock
        )
        self.withdrawals = WithdrawalWorkflow(self.lifecycle, self.ledger)
        self.enquiry_desk = EnquiryDesk(
            self.registry, self.staffing, clock=clock, locks=self.ledger.locks
        )

    # --- Lookups ------------------------------------------------------------------

    def get_user(self, nric: str) -> dm.User:
        user = self.registry.users.get(dm.UserID(nric))
        if user is None:
            raise NotFound("user not found", user=nric)
        return user

    def get_project(self, name: str) -> dm.ProjectView:
        return self.view(self._project(name))

    def get_application(self, application_id: int) -> dm.Application:
        application = self.registry.applications.get(dm.ApplicationID(application_id))
        if application is None:
            raise NotFound("application not found", application=application_id)
        return application

    def get_assignment(self, assignment_id: int) -> dm.StaffAssignment:
        assignment = self.registry.assignments.get(dm.AssignmentID(assignment_id))
        if assignment is None:
            raise NotFound("staff assignment not found", assignment=assignment_id)
        return assignment

    def get_enquiry(self, enquiry_id: int) -> dm.Enquiry:
        enquiry = self.registry.enquiries.get(dm.EnquiryID(enquiry_id))
        if enquiry is None:
            raise NotFound("enquiry not found", enquiry=enquiry_id)
        return enquiry

    # --- Applications -------------------------------------------------------------

    def submit_application(
        self, applicant_id: str, project_name: str, flat_type: FlatType
    ) -> dm.Application:
        with self._rejections("submit_application"):
            applicant = self.get_user(applicant_id)
            project = self._project(project_name)
            application = self.lifecycle.submit(applicant, project, flat_type)
        self.persist(application, applicant)
        logger.info(
            "application %d submitted by %s for %s (%s)",
            application.id,
            applicant.nric,
            project.name,
            flat_type,
        )
        return application

    def approve_application(self, application_id: int, manager_id: str) -> dm.Application:
        with self._rejections("approve_application"):
            application = self.get_application(application_id)
            self.lifecycle.approve(application, self.get_user(manager_id))
        self.persist(application)
        logger.info("application %d approved by %s", application.id, manager_id)
        return application

    def reject_application(self, application_id: int, manager_id: str) -> dm.Application:
        with self._rejections("reject_application"):
            application = self.get_application(application_id)
            self.lifecycle.reject(application, self.get_user(manager_id))
            applicant = self.lifecycle.applicant_of(application)
        self.persist(application, applicant)
        logger.info("application %d rejected by %s", application.id, manager_id)
        return application

    def book_flat(
        self, application_id: int, staff_id: str, flat_type: FlatType | None = None
    ) -> dm.Application:
        with self._rejections("book_flat"):
            application = self.get_application(application_id)
            self.lifecycle.book(application, flat_type, self.get_user(staff_id))
            applicant = self.lifecycle.applicant_of(application)
            project = self.lifecycle.project_of(application)
        self.persist(application, applicant, project)
        logger.info(
            "application %d booked a %s flat in %s (by %s)",
            application.id,
            application.booked_flat_type,
            project.name,
            staff_id,
        )
        return application

    def issue_receipt(self, application_id: int, staff_id: str) -> dm.Receipt:
        with self._rejections("issue_receipt"):
            application = self.get_application(application_id)
            receipt = self.lifecycle.receipt(application, self.get_user(staff_id))
        logger.info("receipt %s issued by %s", receipt.receipt_id, staff_id)
        return receipt

    def application_of(self, applicant_id: str) -> dm.Application | None:
        """The applicant's current non-terminal application, if any."""

        return self.lifecycle.active_application(dm.UserID(applicant_id))

    def applications_of(self, applicant_id: str) -> list[dm.Application]:
        return sorted(self.registry.applications_of(dm.UserID(applicant_id)), key=lambda a: a.id)

    def applications_for_project(self, project_name: str) -> list[dm.Application]:
        project = self._project(project_name)
        return sorted(self.registry.applications_for(project.name), key=lambda a: a.id)

    # --- Withdrawals --------------------------------------------------------------

    def request_withdrawal(self, application_id: int, applicant_id: str) -> dm.Application:
        with self._rejections("request_withdrawal"):
            application = self.get_application(application_id)
            self.withdrawals.request(application, self.get_user(applicant_id))
        self.persist(application)
        logger.info("withdrawal requested for application %d", application.id)
        return application

    def approve_withdrawal(self, application_id: int, manager_id: str) -> dm.Application:
        with self._rejections("approve_withdrawal"):
            application = self.get_application(application_id)
            self.withdrawals.approve(application, self.get_user(manager_id))
            applicant = self.lifecycle.applicant_of(application)
            project = self.lifecycle.project_of(application)
        self.persist(application, applicant, project)
        logger.info("withdrawal of application %d approved by %s", application.id, manager_id)
        return application

    def reject_withdrawal(self, application_id: int, manager_id: str) -> dm.Application:
        with self._rejections("reject_withdrawal"):
            application = self.get_application(application_id)
            self.withdrawals.reject(application, self.get_user(manager_id))
        self.persist(application)
        logger.info("withdrawal of application %d rejected by %s", application.id, manager_id)
        return application

    # --- Staffing -----------------------------------------------------------------

    def register_officer(self, officer_id: str, project_name: str) -> dm.StaffAssignment:
        with self._rejections("register_officer"):
            assignment = self.staffing.register(
                self.get_user(officer_id), self._project(project_name)
            )
        self.persist(assignment)
        logger.info(
            "officer %s registered for %s (assignment %d)",
            officer_id,
            project_name,
            assignment.id,
        )
        return assignment

    def approve_registration(self, assignment_id: int, manager_id: str) -> dm.StaffAssignment:
        with self._rejections("approve_registration"):
            assignment = self.get_assignment(assignment_id)
            self.staffing.approve(assignment, self.get_user(manager_id))
            project = self._project(assignment.project_name)
        self.persist(assignment, project)
        logger.info("assignment %d approved by %s", assignment.id, manager_id)
        return assignment

    def reject_registration(self, assignment_id: int, manager_id: str) -> dm.StaffAssignment:
        with self._rejections("reject_registration"):
            assignment = self.get_assignment(assignment_id)
            self.staffing.reject(assignment, self.get_user(manager_id))
        self.persist(assignment)
        logger.info("assignment %d rejected by %s", assignment.id, manager_id)
        return assignment

    def revoke_registration(self, assignment_id: int, manager_id: str) -> dm.StaffAssignment:
        with self._rejections("revoke_registration"):
            assignment = self.get_assignment(assignment_id)
            self.staffing.revoke(assignment, self.get_user(manager_id))
            project = self._project(assignment.project_name)
        self.persist(assignment, project)
        logger.info("assignment %d revoked by %s", assignment.id, manager_id)
        return assignment

    def assignments_for_project(self, project_name: str) -> list[dm.StaffAssignment]:
        return self.staffing.assignments_for_project(self._project(project_name))

    def assignment_of(self, officer_id: str) -> dm.StaffAssignment | None:
        return self.staffing.assignment_for(officer_id)

    # --- Projects -----------------------------------------------------------------

    def create_project(self, manager_id: str, draft: projects.ProjectDraft) -> dm.ProjectView:
        with self._rejections("create_project"):
            project = projects.create_project(
                self.registry, self.get_user(manager_id), draft, self.ledger, rules=self._rules
            )
        self.persist(project)
        logger.info("project %s created by %s", project.name, manager_id)
        return self.view(project)

    def update_project(
        self, manager_id: str, project_name: str, changes: projects.ProjectChanges
    ) -> dm.ProjectView:
        with self._rejections("update_project"):
            project = self._project(project_name)
            with self.ledger.locks.hold(project_key(project.name)):
                projects.update_project(
                    self.registry,
                    self.get_user(manager_id),
                    project,
                    changes,
                    self.ledger,
                    rules=self._rules,
                )
        self.persist(project)
        logger.info("project %s updated by %s", project.name, manager_id)
        return self.view(project)

    def delete_project(self, manager_id: str, project_name: str) -> dm.ProjectView:
        with self._rejections("delete_project"):
            project = self._project(project_name)
            dependents: list[Entity] = [
                *self.staffing.assignments_for_project(project),
                *self.enquiry_desk.for_project(project),
            ]
            projects.delete_project(self.registry, self.get_user(manager_id), project)
        self.remove(*dependents, project)
        logger.info("project %s deleted by %s", project.name, manager_id)
        return self.view(project)

    def set_project_visibility(
        self, manager_id: str, project_name: str, visible: bool
    ) -> dm.ProjectView:
        with self._rejections("set_project_visibility"):
            project = projects.set_visibility(
                self.get_user(manager_id), self._project(project_name), visible
            )
        self.persist(project)
        logger.info("project %s visibility set to %s", project.name, visible)
        return self.view(project)

    def visible_projects(
        self,
        user_id: str,
        *,
        neighborhood: str | None = None,
        flat_type: FlatType | None = None,
    ) -> list[dm.ProjectView]:
        found = projects.projects_visible_to(
            self.registry,
            self.get_user(user_id),
            neighborhood=neighborhood,
            flat_type=flat_type,
        )
        return [self.view(project) for project in found]

    def open_projects(
        self,
        user_id: str,
        *,
        neighborhood: str | None = None,
        flat_type: FlatType | None = None,
    ) -> list[dm.ProjectView]:
        found = projects.open_projects_for(
            self.registry,
            self.get_user(user_id),
            self._clock(),
            neighborhood=neighborhood,
            flat_type=flat_type,
            rules=self._rules,
        )
        return [self.view(project) for project in found]

    def managed_projects(self, manager_id: str) -> list[dm.ProjectView]:
        return [
            self.view(project)
            for project in projects.managed_by(self.registry, self.get_user(manager_id))
        ]

    # --- Enquiries ----------------------------------------------------------------

    def submit_enquiry(self, author_id: str, project_name: str, question: str) -> dm.Enquiry:
        with self._rejections("submit_enquiry"):
            enquiry = self.enquiry_desk.submit(
                self.get_user(author_id), self._project(project_name), question
            )
        self.persist(enquiry)
        logger.info("enquiry %d submitted by %s", enquiry.id, author_id)
        return enquiry

    def edit_enquiry(self, enquiry_id: int, author_id: str, question: str) -> dm.Enquiry:
        with self._rejections("edit_enquiry"):
            enquiry = self.enquiry_desk.edit(
                self.get_enquiry(enquiry_id), self.get_user(author_id), question
            )
        self.persist(enquiry)
        return enquiry

    def delete_enquiry(self, enquiry_id: int, author_id: str) -> dm.Enquiry:
        with self._rejections("delete_enquiry"):
            enquiry = self.enquiry_desk.delete(
                self.get_enquiry(enquiry_id), self.get_user(author_id)
            )
        self.remove(enquiry)
        logger.info("enquiry %d deleted by %s", enquiry.id, author_id)
        return enquiry

    def reply_enquiry(self, enquiry_id: int, responder_id: str, text: str) -> dm.Enquiry:
        with self._rejections("reply_enquiry"):
            enquiry = self.enquiry_desk.reply(
                self.get_enquiry(enquiry_id), self.get_user(responder_id), text
            )
        self.persist(enquiry)
        logger.info("enquiry %d answered by %s", enquiry.id, responder_id)
        return enquiry

    def enquiries_for_project(self, project_name: str) -> list[dm.Enquiry]:
        return self.enquiry_desk.for_project(self._project(project_name))

    def enquiries_by(self, author_id: str) -> list[dm.Enquiry]:
        return self.enquiry_desk.by_author(dm.UserID(author_id))

    # --- Reports ------------------------------------------------------------------

    def applications_report(
        self, criteria: reporting.ReportCriteria | None = None
    ) -> reporting.Report:
        return reporting.build_report(
            list(self.registry.applications.values()), self.registry.users, criteria
        )

    def booked_flats_report(
        self, criteria: reporting.ReportCriteria | None = None
    ) -> reporting.Report:
        return reporting.booking_report(
            list(self.registry.applications.values()), self.registry.users, criteria
        )

    def view(self, project: dm.Project) -> dm.ProjectView:
        """Detached read-only copy of ``project``."""

        with self.ledger.locks.hold(project_key(project.name)):
            return dm.ProjectView(
                name=project.name,
                neighborhood=project.neighborhood,
                opening_date=project.opening_date,
                closing_date=project.closing_date,
                manager_id=project.manager_id,
                units=self.ledger.snapshot(project),
                prices=MappingProxyType(dict(project.prices)),
                max_officer_slots=project.staff_slots.max_slots,
                assigned_officers=tuple(project.staff_slots.assigned),
                visible=project.visible,
            )

    def _project(self, name: str) -> dm.Project:
        project = self.registry.projects.get(dm.ProjectName(name))
        if project is None:
            raise NotFound("project not found", project=name)
        return project

    # --- Persistence --------------------------------------------------------------

    def persist(self, *entities: Entity) -> None:
        """Write ``entities`` through the store, surfacing failures as PersistenceError."""

        for entity in entities:
            try:
                self._store.save(entity)
            except (OSError, SQLAlchemyError, PydanticSerializationError) as exc:
                logger.warning("failed to persist %s: %s", type(entity).__name__, exc)
                raise PersistenceError(
                    f"could not persist {type(entity).__name__}", entity=type(entity).__name__
                ) from exc

    def remove(self, *entities: Entity) -> None:
        for entity in entities:
            try:
                self._store.delete(entity)
            except (OSError, SQLAlchemyError, PydanticSerializationError) as exc:
                logger.warning("failed to delete %s: %s", type(entity).__name__, exc)
                raise PersistenceError(
                    f"could not delete {type(entity).__name__}", entity=type(entity).__name__
                ) from exc

    @contextmanager
    def _rejections(self, operation: str) -> Iterator[None]:
        try:
            yield
        except EngineError as exc:
            logger.debug("%s rejected (%s): %s %s", operation, exc.kind, exc.detail, exc.entity_ids)
            raise
