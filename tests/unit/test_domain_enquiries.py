"""Tests for project enquiries."""

from __future__ import annotations

import threading
from datetime import date

import pytest

from bto_engine.domain import models as dm
from bto_engine.domain.enquiries import EnquiryDesk
from bto_engine.domain.enums import AssignmentStatus, MaritalStatus, UserRole
from bto_engine.domain.errors import InvalidRequest, InvalidTransition, NotAuthorized
from bto_engine.domain.inventory import InventoryLedger
from bto_engine.domain.staffing import StaffAssignmentWorkflow

TODAY = date(2025, 3, 1)


def _user(nric: str, role: UserRole = UserRole.APPLICANT) -> dm.User:
    return dm.User(
        nric=dm.UserID(nric),
        name=nric,
        age=30,
        marital_status=MaritalStatus.MARRIED,
        role=role,
        password_hash="",
        applicant_state=None if role == UserRole.MANAGER else dm.ApplicantState(),
    )


def _setup() -> tuple[dm.Registry, EnquiryDesk]:
    registry = dm.Registry()
    for user in (
        _user("T7654321B", UserRole.MANAGER),
        _user("T1234567C", UserRole.OFFICER),
        _user("T2345678D", UserRole.OFFICER),
        _user("S1234567A"),
        _user("S2345678B"),
    ):
        registry.users[user.nric] = user
    registry.projects[dm.ProjectName("Oak")] = dm.Project(
        name=dm.ProjectName("Oak"),
        neighborhood="Yishun",
        opening_date=date(2025, 2, 1),
        closing_date=date(2025, 4, 1),
        manager_id=dm.UserID("T7654321B"),
        visible=True,
    )
    registry.assignments[dm.AssignmentID(1)] = dm.StaffAssignment(
        id=dm.AssignmentID(1),
        officer_id=dm.UserID("T1234567C"),
        project_name=dm.ProjectName("Oak"),
        requested_on=date(2025, 2, 1),
        status=AssignmentStatus.APPROVED,
    )
    staffing = StaffAssignmentWorkflow(registry, InventoryLedger(), clock=lambda: TODAY)
    return registry, EnquiryDesk(registry, staffing, clock=lambda: TODAY)


def _ask(registry: dm.Registry, desk: EnquiryDesk, text: str = "Is there parking?") -> dm.Enquiry:
    return desk.submit(
        registry.users[dm.UserID("S1234567A")], registry.projects[dm.ProjectName("Oak")], text
    )


def test_submit_strips_and_numbers_enquiries():
    registry, desk = _setup()
    first = _ask(registry, desk, "  When is key collection?  ")
    second = _ask(registry, desk)

    assert first.question == "When is key collection?"
    assert first.submitted_on == TODAY
    assert (first.id, second.id) == (1, 2)
    assert first.is_answered is False


def test_empty_question_rejected():
    registry, desk = _setup()
    with pytest.raises(InvalidRequest):
        _ask(registry, desk, "   ")


def test_only_author_edits_or_deletes():
    registry, desk = _setup()
    enquiry = _ask(registry, desk)
    stranger = registry.users[dm.UserID("S2345678B")]

    with pytest.raises(NotAuthorized):
        desk.edit(enquiry, stranger, "Hijacked")
    with pytest.raises(NotAuthorized):
        desk.delete(enquiry, stranger)

    desk.edit(enquiry, registry.users[dm.UserID("S1234567A")], "Is there a carpark?")
    assert enquiry.question == "Is there a carpark?"


def test_answered_enquiry_is_frozen():
    registry, desk = _setup()
    enquiry = _ask(registry, desk)
    desk.reply(enquiry, registry.users[dm.UserID("T7654321B")], "Yes, multi-storey.")

    assert enquiry.is_answered is True
    assert enquiry.replied_by == "T7654321B"
    assert enquiry.replied_on == TODAY
    with pytest.raises(InvalidTransition):
        desk.edit(enquiry, registry.users[dm.UserID("S1234567A")], "Changed my mind")


def test_approved_officer_may_reply_but_others_may_not():
    registry, desk = _setup()
    enquiry = _ask(registry, desk)

    with pytest.raises(NotAuthorized):
        desk.reply(enquiry, registry.users[dm.UserID("T2345678D")], "Maybe")
    with pytest.raises(NotAuthorized):
        desk.reply(enquiry, registry.users[dm.UserID("S2345678B")], "Maybe")

    desk.reply(enquiry, registry.users[dm.UserID("T1234567C")], "Yes")
    assert enquiry.reply == "Yes"


def test_delete_and_listings():
    registry, desk = _setup()
    first = _ask(registry, desk)
    _ask(registry, desk, "Second question")
    oak = registry.projects[dm.ProjectName("Oak")]

    assert [e.id for e in desk.for_project(oak)] == [1, 2]
    desk.delete(first, registry.users[dm.UserID("S1234567A")])

    assert [e.id for e in desk.for_project(oak)] == [2]
    assert [e.id for e in desk.by_author(dm.UserID("S1234567A"))] == [2]
    assert desk.by_author(dm.UserID("S2345678B")) == []


def test_concurrent_enquiries_get_distinct_ids():
    registry, desk = _setup()
    authors = [dm.UserID("S1234567A"), dm.UserID("S2345678B")] * 8
    barrier = threading.Barrier(len(authors))

    def ask(author_id: dm.UserID) -> None:
        barrier.wait()
        desk.submit(registry.users[author_id], registry.projects[dm.ProjectName("Oak")], "Lift?")

    threads = [threading.Thread(target=ask, args=(author,)) for author in authors]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(registry.enquiries) == list(range(1, len(authors) + 1))
