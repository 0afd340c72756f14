"""Application and staff assignment models for the allocation database."""

from datetime import date

from sqlalchemy import Boolean, Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class ApplicationRow(Base, TimestampMixin):
    """Represents an application for a flat.

    Attributes:
        id: Primary key
        applicant_id: NRIC of the applicant
        project_name: Project applied to
        flat_type: Requested flat type
        submitted_on: Submission date
        status: pending/successful/unsuccessful/booked
        booked_flat_type: Flat type taken at booking
        booked_on: Booking date
        withdrawal_requested: Whether a withdrawal awaits arbitration
    """

    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    applicant_id: Mapped[str] = mapped_column(String(9), nullable=False, index=True)
    project_name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    flat_type: Mapped[str] = mapped_column(String, nullable=False)
    submitted_on: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, index=True)
    booked_flat_type: Mapped[str | None] = mapped_column(String, nullable=True)
    booked_on: Mapped[date | None] = mapped_column(Date, nullable=True)
    withdrawal_requested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<ApplicationRow(id={self.id}, status='{self.status}')>"


class StaffAssignmentRow(Base, TimestampMixin):
    """Represents an officer's registration for a project."""

    __tablename__ = "staff_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    officer_id: Mapped[str] = mapped_column(String(9), nullable=False, index=True)
    project_name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    requested_on: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)

    def __repr__(self) -> str:
        return f"<StaffAssignmentRow(id={self.id}, officer_id='{self.officer_id}')>"
