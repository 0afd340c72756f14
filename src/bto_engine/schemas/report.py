from pydantic import BaseModel, Field, model_validator

from bto_engine.domain.enums import ApplicationStatus, FlatType, MaritalStatus
from bto_engine.domain.reporting import ReportCriteria


class ReportQuery(BaseModel):
    project_name: str | None = Field(None, description="Case-insensitive project name")
    flat_type: FlatType | None = Field(None, description="Flat type filter")
    marital_status: MaritalStatus | None = Field(None, description="Marital status filter")
    min_age: int | None = Field(None, ge=0, description="Inclusive lower age bound")
    max_age: int | None = Field(None, ge=0, description="Inclusive upper age bound")
    statuses: list[ApplicationStatus] | None = Field(None, description="Statuses to include")

    @model_validator(mode="after")
    def _check_age_range(self) -> "ReportQuery":
        if self.min_age is not None and self.max_age is not None and self.min_age > self.max_age:
            raise ValueError("min_age must not exceed max_age")
        return self

    def to_criteria(self) -> ReportCriteria:
        return ReportCriteria(
            project_name=self.project_name,
            flat_type=self.flat_type,
            marital_status=self.marital_status,
            min_age=self.min_age,
            max_age=self.max_age,
            statuses=frozenset(self.statuses) if self.statuses else None,
        )
