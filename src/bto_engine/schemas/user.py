from pydantic import BaseModel, Field

from bto_engine.domain.enums import MaritalStatus, UserRole

NRIC_PATTERN = r"^[ST]\d{7}[A-Z]$"


class UserCreate(BaseModel):
    nric: str = Field(..., pattern=NRIC_PATTERN, description="Letter, seven digits, letter")
    name: str = Field(..., min_length=1, description="Display name")
    age: int = Field(..., ge=0, le=150, description="Age in years")
    marital_status: MaritalStatus = Field(..., description="single or married")
    role: UserRole = Field(default=UserRole.APPLICANT, description="Fixed account role")
    password: str | None = Field(
        None, min_length=1, description="Initial credential (defaults from settings)"
    )
