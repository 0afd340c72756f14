"""Project model for the allocation database.

Unit stock and prices are stored as JSON objects keyed by flat type; the
assigned officers as a JSON list of NRICs.
"""

from datetime import date
from typing import Any

from sqlalchemy import Boolean, Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class ProjectRow(Base, TimestampMixin):
    """Represents a housing project.

    Attributes:
        name: Primary key, unique project name
        neighborhood: Neighborhood of the project
        opening_date: First day applications are accepted
        closing_date: Last day applications are accepted
        manager_id: NRIC of the manager in charge
        units: Remaining units per flat type
        prices: Selling price per flat type
        max_officer_slots: Officer capacity
        assigned_officers: NRICs of approved officers
        visible: Whether the project is listed to applicants
    """

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String, primary_key=True)
    neighborhood: Mapped[str] = mapped_column(String, nullable=False)
    opening_date: Mapped[date] = mapped_column(Date, nullable=False)
    closing_date: Mapped[date] = mapped_column(Date, nullable=False)
    manager_id: Mapped[str] = mapped_column(String(9), nullable=False, index=True)
    units: Mapped[dict[str, Any]] = mapped_column(nullable=False, default=dict)
    prices: Mapped[dict[str, Any]] = mapped_column(nullable=False, default=dict)
    max_officer_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    assigned_officers: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<ProjectRow(name='{self.name}', manager_id='{self.manager_id}')>"
