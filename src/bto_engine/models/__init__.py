"""SQLAlchemy models for the allocation engine.

This module exports all database models and the declarative base.
"""

from .application import ApplicationRow, StaffAssignmentRow
from .base import Base, TimestampMixin
from .enquiry import EnquiryRow
from .project import ProjectRow
from .user import UserRow

__all__ = [
    "ApplicationRow",
    "Base",
    "EnquiryRow",
    "ProjectRow",
    "StaffAssignmentRow",
    "TimestampMixin",
    "UserRow",
]
