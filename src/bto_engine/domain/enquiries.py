"""Project enquiries raised by users and answered by project staff."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from bto_engine.domain.errors import InvalidRequest, InvalidTransition, NotAuthorized
from bto_engine.domain.models import Enquiry, Project, Registry, User, UserID
from bto_engine.domain.staffing import StaffAssignmentWorkflow
from bto_engine.utils.locks import KeyedLocks, sequence_key


class EnquiryDesk:
    """Create, edit, delete and reply to enquiries."""

    def __init__(
        self,
        registry: Registry,
        staffing: StaffAssignmentWorkflow,
        *,
        clock: Callable[[], date] = date.today,
        locks: KeyedLocks | None = None,
    ) -> None:
        self._registry = registry
        self._staffing = staffing
        self._clock = clock
        self._locks = locks or KeyedLocks()

    def submit(self, author: User, project: Project, question: str) -> Enquiry:
        text = _required(question)
        with self._locks.hold(sequence_key("enquiries")):
            enquiry = Enquiry(
                id=self._registry.next_enquiry_id(),
                author_id=author.nric,
                project_name=project.name,
                question=text,
                submitted_on=self._clock(),
            )
            self._registry.enquiries[enquiry.id] = enquiry
        return enquiry

    def edit(self, enquiry: Enquiry, author: User, question: str) -> Enquiry:
        self._ensure_author(enquiry, author)
        if enquiry.is_answered:
            raise InvalidTransition("answered enquiries cannot be edited", enquiry=enquiry.id)
        enquiry.question = _required(question)
        return enquiry

    def delete(self, enquiry: Enquiry, author: User) -> Enquiry:
        self._ensure_author(enquiry, author)
        self._registry.enquiries.pop(enquiry.id, None)
        return enquiry

    def reply(self, enquiry: Enquiry, responder: User, text: str) -> Enquiry:
        """Answer as the project's manager or one of its approved officers."""

        project = self._registry.projects.get(enquiry.project_name)
        if project is None or not self._staffing.can_administer(responder, project):
            raise NotAuthorized(
                "only staff of this project may reply",
                user=responder.nric,
                enquiry=enquiry.id,
            )
        enquiry.reply = _required(text)
        enquiry.replied_by = responder.nric
        enquiry.replied_on = self._clock()
        return enquiry

    def for_project(self, project: Project) -> list[Enquiry]:
        return sorted(
            (e for e in list(self._registry.enquiries.values()) if e.project_name == project.name),
            key=lambda e: e.id,
        )

    def by_author(self, author_id: UserID) -> list[Enquiry]:
        return sorted(
            (e for e in list(self._registry.enquiries.values()) if e.author_id == author_id),
            key=lambda e: e.id,
        )

    @staticmethod
    def _ensure_author(enquiry: Enquiry, author: User) -> None:
        if enquiry.author_id != author.nric:
            raise NotAuthorized(
                "only the author may change this enquiry",
                user=author.nric,
                enquiry=enquiry.id,
            )


def _required(text: str) -> str:
    stripped = text.strip()
    if not stripped:
        raise InvalidRequest("text must not be empty")
    return stripped
