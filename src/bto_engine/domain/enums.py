"""Enumerations shared by the allocation domain."""

from __future__ import annotations

from enum import StrEnum


class FlatType(StrEnum):
    """Flat categories offered by a project, smallest first."""

    TWO_ROOM = "2-Room"
    THREE_ROOM = "3-Room"


class MaritalStatus(StrEnum):
    """Marital status as recorded on the applicant profile."""

    SINGLE = "single"
    MARRIED = "married"


class UserRole(StrEnum):
    """Fixed role of a user account."""

    APPLICANT = "applicant"
    OFFICER = "officer"
    MANAGER = "manager"


class ApplicationStatus(StrEnum):
    """Application lifecycle states."""

    PENDING = "pending"
    SUCCESSFUL = "successful"
    UNSUCCESSFUL = "unsuccessful"
    BOOKED = "booked"


class AssignmentStatus(StrEnum):
    """Officer registration states for a project."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Roles carrying the applicant capability (an officer may also apply).
APPLICANT_ROLES = frozenset({UserRole.APPLICANT, UserRole.OFFICER})
