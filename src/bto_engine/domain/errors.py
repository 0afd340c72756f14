"""Typed failures raised by the allocation engine.

Every rejection is an expected, caller-recoverable condition.  Errors carry
a machine-readable :class:`ErrorKind` and the ids of the entities involved
so a front end can render a message without parsing strings.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Discriminator for every engine failure."""

    DUPLICATE_APPLICATION = "duplicate_application"
    NOT_ELIGIBLE = "not_eligible"
    NO_INVENTORY = "no_inventory"
    WINDOW_CLOSED = "window_closed"
    INVALID_TRANSITION = "invalid_transition"
    NOT_AUTHORIZED = "not_authorized"
    ALREADY_ASSIGNED = "already_assigned"
    NO_SLOTS = "no_slots"
    CONFLICTING_APPLICANT_ROLE = "conflicting_applicant_role"
    NOT_FOUND = "not_found"
    DUPLICATE_PROJECT = "duplicate_project"
    SCHEDULE_CONFLICT = "schedule_conflict"
    PROJECT_IN_USE = "project_in_use"
    INVALID_REQUEST = "invalid_request"
    AUTH_FAILED = "auth_failed"
    PERSISTENCE = "persistence"


class EngineError(Exception):
    """Base class for all engine failures."""

    kind: ErrorKind

    def __init__(self, detail: str, **entity_ids: object) -> None:
        super().__init__(detail)
        self.detail = detail
        self.entity_ids: dict[str, str] = {
            key: str(value) for key, value in entity_ids.items() if value is not None
        }

    def to_dict(self) -> dict[str, object]:
        return {"kind": str(self.kind), "detail": self.detail, "entity_ids": dict(self.entity_ids)}


class AllocationError(EngineError):
    """Business-rule rejection."""


class DuplicateApplication(AllocationError):
    kind = ErrorKind.DUPLICATE_APPLICATION


class NotEligible(AllocationError):
    kind = ErrorKind.NOT_ELIGIBLE


class NoInventory(AllocationError):
    kind = ErrorKind.NO_INVENTORY


class WindowClosed(AllocationError):
    kind = ErrorKind.WINDOW_CLOSED


class InvalidTransition(AllocationError):
    kind = ErrorKind.INVALID_TRANSITION


class NotAuthorized(AllocationError):
    kind = ErrorKind.NOT_AUTHORIZED


class AlreadyAssigned(AllocationError):
    kind = ErrorKind.ALREADY_ASSIGNED


class NoSlots(AllocationError):
    kind = ErrorKind.NO_SLOTS


class ConflictingApplicantRole(AllocationError):
    kind = ErrorKind.CONFLICTING_APPLICANT_ROLE


class NotFound(AllocationError):
    kind = ErrorKind.NOT_FOUND


class DuplicateProject(AllocationError):
    kind = ErrorKind.DUPLICATE_PROJECT


class ScheduleConflict(AllocationError):
    kind = ErrorKind.SCHEDULE_CONFLICT


class ProjectInUse(AllocationError):
    kind = ErrorKind.PROJECT_IN_USE


class InvalidRequest(AllocationError):
    kind = ErrorKind.INVALID_REQUEST


class AuthError(EngineError):
    """Authentication failure (unknown id, malformed id or wrong credential)."""

    kind = ErrorKind.AUTH_FAILED


class PersistenceError(EngineError):
    """The store failed after an in-memory transition succeeded."""

    kind = ErrorKind.PERSISTENCE
