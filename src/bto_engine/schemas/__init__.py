from .project import ProjectCreate, ProjectUpdate
from .report import ReportQuery
from .user import NRIC_PATTERN, UserCreate

__all__ = [
    "NRIC_PATTERN",
    "ProjectCreate",
    "ProjectUpdate",
    "ReportQuery",
    "UserCreate",
]
