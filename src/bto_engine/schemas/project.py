from datetime import date

from pydantic import BaseModel, Field, model_validator

from bto_engine.domain.enums import FlatType
from bto_engine.domain.projects import ProjectChanges, ProjectDraft


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Unique project name")
    neighborhood: str = Field(..., min_length=1, description="Neighborhood of the project")
    opening_date: date = Field(..., description="First day applications are accepted")
    closing_date: date = Field(..., description="Last day applications are accepted")
    units: dict[FlatType, int] = Field(
        default_factory=dict, description="Initial unit stock per flat type"
    )
    prices: dict[FlatType, float] = Field(
        default_factory=dict, description="Selling price per flat type"
    )
    officer_slots: int = Field(default=0, ge=0, le=10, description="Officer capacity")
    visible: bool = Field(default=False, description="Listed to applicants")

    @model_validator(mode="after")
    def _check_window_and_stock(self) -> "ProjectCreate":
        if self.closing_date < self.opening_date:
            raise ValueError("closing_date must not precede opening_date")
        if any(units < 0 for units in self.units.values()):
            raise ValueError("unit counts must be non-negative")
        return self

    def to_draft(self) -> ProjectDraft:
        return ProjectDraft(
            name=self.name,
            neighborhood=self.neighborhood,
            opening_date=self.opening_date,
            closing_date=self.closing_date,
            units=dict(self.units),
            prices=dict(self.prices),
            officer_slots=self.officer_slots,
            visible=self.visible,
        )


class ProjectUpdate(BaseModel):
    neighborhood: str | None = Field(None, min_length=1)
    opening_date: date | None = None
    closing_date: date | None = None
    officer_slots: int | None = Field(None, ge=0, le=10)
    units: dict[FlatType, int] | None = None
    prices: dict[FlatType, float] | None = None

    def to_changes(self) -> ProjectChanges:
        return ProjectChanges(
            neighborhood=self.neighborhood,
            opening_date=self.opening_date,
            closing_date=self.closing_date,
            officer_slots=self.officer_slots,
            units=dict(self.units) if self.units is not None else None,
            prices=dict(self.prices) if self.prices is not None else None,
        )
