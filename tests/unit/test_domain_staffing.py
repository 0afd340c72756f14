"""Tests for officer registration and project authorization."""

from __future__ import annotations

import threading
from datetime import date

import pytest
from hypothesis import given
from hypothesis import strategies as st

from bto_engine.domain import models as dm
from bto_engine.domain.enums import AssignmentStatus, FlatType, MaritalStatus, UserRole
from bto_engine.domain.errors import (
    AlreadyAssigned,
    ConflictingApplicantRole,
    InvalidTransition,
    NoSlots,
    NotAuthorized,
)
from bto_engine.domain.inventory import InventoryLedger
from bto_engine.domain.staffing import StaffAssignmentWorkflow

MANAGER = "T7654321B"


def _user(nric: str, role: UserRole = UserRole.OFFICER) -> dm.User:
    return dm.User(
        nric=dm.UserID(nric),
        name=nric,
        age=40,
        marital_status=MaritalStatus.MARRIED,
        role=role,
        password_hash="",
        applicant_state=None if role == UserRole.MANAGER else dm.ApplicantState(),
    )


def _registry(slots: int = 1, officers: int = 3) -> dm.Registry:
    registry = dm.Registry()
    registry.users[dm.UserID(MANAGER)] = _user(MANAGER, UserRole.MANAGER)
    for index in range(officers):
        officer = _user(f"T000000{index}A")
        registry.users[officer.nric] = officer
    for name in ("Oak", "Pine"):
        registry.projects[dm.ProjectName(name)] = dm.Project(
            name=dm.ProjectName(name),
            neighborhood="Tampines",
            opening_date=date(2025, 1, 1),
            closing_date=date(2025, 6, 30),
            manager_id=dm.UserID(MANAGER),
            units={FlatType.TWO_ROOM: 2},
            staff_slots=dm.StaffSlots(max_slots=slots),
            visible=True,
        )
    return registry


def _workflow(registry: dm.Registry) -> StaffAssignmentWorkflow:
    return StaffAssignmentWorkflow(registry, InventoryLedger(), clock=lambda: date(2025, 2, 1))


def _officer(registry: dm.Registry, index: int) -> dm.User:
    return registry.users[dm.UserID(f"T000000{index}A")]


def _project(registry: dm.Registry, name: str = "Oak") -> dm.Project:
    return registry.projects[dm.ProjectName(name)]


class TestRegister:
    def test_creates_pending_registration(self):
        registry = _registry()
        assignment = _workflow(registry).register(_officer(registry, 0), _project(registry))

        assert assignment.status == AssignmentStatus.PENDING
        assert assignment.requested_on == date(2025, 2, 1)
        assert registry.assignments[assignment.id] is assignment

    def test_applicants_cannot_register(self):
        registry = _registry()
        applicant = _user("S1234567A", UserRole.APPLICANT)
        with pytest.raises(NotAuthorized):
            _workflow(registry).register(applicant, _project(registry))

    def test_second_registration_is_rejected(self):
        registry = _registry()
        workflow = _workflow(registry)
        workflow.register(_officer(registry, 0), _project(registry))

        with pytest.raises(AlreadyAssigned):
            workflow.register(_officer(registry, 0), _project(registry, "Pine"))

    def test_rejected_registration_does_not_block(self):
        registry = _registry()
        workflow = _workflow(registry)
        first = workflow.register(_officer(registry, 0), _project(registry))
        workflow.reject(first, registry.users[dm.UserID(MANAGER)])

        second = workflow.register(_officer(registry, 0), _project(registry, "Pine"))
        assert workflow.assignment_for(_officer(registry, 0).nric) is second

    def test_active_application_to_same_project_conflicts(self):
        registry = _registry()
        officer = _officer(registry, 0)
        registry.applications[dm.ApplicationID(1)] = dm.Application(
            id=dm.ApplicationID(1),
            applicant_id=officer.nric,
            project_name=dm.ProjectName("Oak"),
            flat_type=FlatType.TWO_ROOM,
            submitted_on=date(2025, 1, 15),
        )

        with pytest.raises(ConflictingApplicantRole):
            _workflow(registry).register(officer, _project(registry))
        assert _workflow(registry).register(officer, _project(registry, "Pine"))

    def test_full_project_refuses_registration(self):
        registry = _registry(slots=1)
        workflow = _workflow(registry)
        manager = registry.users[dm.UserID(MANAGER)]
        workflow.approve(workflow.register(_officer(registry, 0), _project(registry)), manager)

        with pytest.raises(NoSlots):
            workflow.register(_officer(registry, 1), _project(registry))

    @pytest.mark.parametrize("trial", range(10))
    def test_simultaneous_registrations_keep_one_live(self, trial):
        registry = _registry(slots=2)
        workflow = _workflow(registry)
        officer = _officer(registry, 0)
        barrier = threading.Barrier(2)
        outcomes: list[str] = []

        def register(name: str) -> None:
            barrier.wait()
            try:
                workflow.register(officer, _project(registry, name))
                outcomes.append("registered")
            except AlreadyAssigned:
                outcomes.append("refused")

        threads = [threading.Thread(target=register, args=(n,)) for n in ("Oak", "Pine")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(outcomes) == ["refused", "registered"]
        assert len(registry.assignments) == 1
        assert workflow.assignment_for(officer.nric) is not None


class TestArbitration:
    def test_approve_consumes_slot_and_authorizes(self):
        registry = _registry()
        workflow = _workflow(registry)
        officer = _officer(registry, 0)
        assignment = workflow.register(officer, _project(registry))
        assert workflow.is_authorized(officer, _project(registry)) is False

        workflow.approve(assignment, registry.users[dm.UserID(MANAGER)])

        assert assignment.status == AssignmentStatus.APPROVED
        assert _project(registry).staff_slots.assigned == [officer.nric]
        assert workflow.is_authorized(officer, _project(registry)) is True
        assert workflow.is_authorized(officer, _project(registry, "Pine")) is False

    def test_second_approval_into_last_slot_fails(self):
        registry = _registry(slots=1)
        workflow = _workflow(registry)
        manager = registry.users[dm.UserID(MANAGER)]
        first = workflow.register(_officer(registry, 0), _project(registry))
        second = workflow.register(_officer(registry, 1), _project(registry))

        workflow.approve(first, manager)
        with pytest.raises(NoSlots):
            workflow.approve(second, manager)
        assert second.status == AssignmentStatus.PENDING

    def test_only_owning_manager_arbitrates(self):
        registry = _registry()
        workflow = _workflow(registry)
        assignment = workflow.register(_officer(registry, 0), _project(registry))
        stranger = _user("T9999999X", UserRole.MANAGER)

        with pytest.raises(NotAuthorized):
            workflow.approve(assignment, stranger)
        with pytest.raises(NotAuthorized):
            workflow.reject(assignment, stranger)

    def test_reject_only_from_pending(self):
        registry = _registry()
        workflow = _workflow(registry)
        manager = registry.users[dm.UserID(MANAGER)]
        assignment = workflow.register(_officer(registry, 0), _project(registry))
        workflow.approve(assignment, manager)

        with pytest.raises(InvalidTransition):
            workflow.reject(assignment, manager)

    def test_revoke_releases_slot(self):
        registry = _registry(slots=1)
        workflow = _workflow(registry)
        manager = registry.users[dm.UserID(MANAGER)]
        assignment = workflow.register(_officer(registry, 0), _project(registry))
        workflow.approve(assignment, manager)

        workflow.revoke(assignment, manager)

        assert assignment.status == AssignmentStatus.REJECTED
        assert _project(registry).staff_slots.assigned == []
        assert workflow.is_authorized(_officer(registry, 0), _project(registry)) is False
        replacement = workflow.register(_officer(registry, 1), _project(registry))
        workflow.approve(replacement, manager)

    def test_revoke_pending_is_invalid(self):
        registry = _registry()
        workflow = _workflow(registry)
        assignment = workflow.register(_officer(registry, 0), _project(registry))
        with pytest.raises(InvalidTransition):
            workflow.revoke(assignment, registry.users[dm.UserID(MANAGER)])

    def test_can_administer_includes_owning_manager(self):
        registry = _registry()
        workflow = _workflow(registry)
        manager = registry.users[dm.UserID(MANAGER)]

        assert workflow.can_administer(manager, _project(registry)) is True
        assert workflow.is_authorized(manager, _project(registry)) is False


@given(
    slots=st.integers(min_value=0, max_value=4),
    approvals=st.lists(st.integers(min_value=0, max_value=5), max_size=10),
)
def test_assigned_officers_never_exceed_slots(slots, approvals):
    registry = _registry(slots=slots, officers=6)
    workflow = _workflow(registry)
    manager = registry.users[dm.UserID(MANAGER)]
    project = _project(registry)
    pending: dict[int, dm.StaffAssignment] = {}
    for index in range(6):
        try:
            pending[index] = workflow.register(_officer(registry, index), project)
        except NoSlots:
            assert slots == 0
    for index in approvals:
        assignment = pending.get(index)
        if assignment is None:
            continue
        try:
            workflow.approve(assignment, manager)
        except (NoSlots, InvalidTransition):
            pass
        assert len(project.staff_slots.assigned) <= slots
    approved = [a for a in pending.values() if a.status == AssignmentStatus.APPROVED]
    assert len(approved) == len(project.staff_slots.assigned)
