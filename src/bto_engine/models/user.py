"""User model for the allocation database.

This module contains the table backing every account (applicants,
officers and managers), including the applicant-capability columns.
"""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class UserRow(Base, TimestampMixin):
    """Represents a user account.

    Attributes:
        nric: Primary key, national-ID-style identifier
        name: Display name
        age: Age in years
        marital_status: "single" or "married"
        role: "applicant", "officer" or "manager"
        password_hash: Salted credential digest
        has_applicant_state: Whether the applicant capability columns apply
        active_application_id: Current non-terminal application, if any
        booked_project: Project of the booked flat, if any
        booked_flat_type: Booked flat type, if any
    """

    __tablename__ = "users"

    # Primary key
    nric: Mapped[str] = mapped_column(String(9), primary_key=True)

    # Profile
    name: Mapped[str] = mapped_column(String, nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    marital_status: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)

    # Applicant capability
    has_applicant_state: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active_application_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    booked_project: Mapped[str | None] = mapped_column(String, nullable=True)
    booked_flat_type: Mapped[str | None] = mapped_column(String, nullable=True)

    def __repr__(self) -> str:
        return f"<UserRow(nric='{self.nric}', role='{self.role}')>"
