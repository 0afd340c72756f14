"""Withdrawal requests and their arbitration by the project manager."""

from __future__ import annotations

from bto_engine.domain.enums import ApplicationStatus
from bto_engine.domain.errors import InvalidTransition, NotAuthorized
from bto_engine.domain.inventory import InventoryLedger
from bto_engine.domain.lifecycle import ApplicationLifecycle
from bto_engine.domain.models import Application, User
from bto_engine.domain.staffing import ensure_manager
from bto_engine.utils.locks import application_key, project_key


class WithdrawalWorkflow:
    """Raise, approve and reject the withdrawal flag of an application."""

    def __init__(self, lifecycle: ApplicationLifecycle, ledger: InventoryLedger) -> None:
        self._lifecycle = lifecycle
        self._ledger = ledger

    def request(self, application: Application, applicant: User) -> Application:
        """Flag the application for withdrawal; a repeat request is a no-op."""

        if applicant.nric != application.applicant_id:
            raise NotAuthorized(
                "only the applicant may request withdrawal",
                user=applicant.nric,
                application=application.id,
            )
        with self._ledger.locks.hold(application_key(application.id)):
            if application.status == ApplicationStatus.UNSUCCESSFUL:
                raise InvalidTransition(
                    "cannot withdraw an unsuccessful application",
                    application=application.id,
                )
            application.withdrawal_requested = True
        return application

    def approve(self, application: Application, manager: User) -> Application:
        """Exit the pipeline: return a booked unit, then force UNSUCCESSFUL."""

        project = self._lifecycle.project_of(application)
        ensure_manager(manager, project)
        with self._ledger.locks.hold(application_key(application.id), project_key(project.name)):
            self._ensure_requested(application)
            applicant = self._lifecycle.applicant_of(application)
            if (
                application.status == ApplicationStatus.BOOKED
                and application.booked_flat_type is not None
            ):
                self._ledger.increment(project, application.booked_flat_type)
                state = applicant.applicant_state
                if state is not None and state.booked_project == project.name:
                    state.booked_project = None
                    state.booked_flat_type = None
            application.status = ApplicationStatus.UNSUCCESSFUL
            application.withdrawal_requested = False
            state = applicant.applicant_state
            if state is not None and state.active_application_id == application.id:
                state.active_application_id = None
        return application

    def reject(self, application: Application, manager: User) -> Application:
        """Clear the flag; the application keeps its current status."""

        project = self._lifecycle.project_of(application)
        ensure_manager(manager, project)
        with self._ledger.locks.hold(application_key(application.id)):
            self._ensure_requested(application)
            application.withdrawal_requested = False
        return application

    @staticmethod
    def _ensure_requested(application: Application) -> None:
        if not application.withdrawal_requested:
            raise InvalidTransition(
                "no withdrawal has been requested",
                application=application.id,
            )
