"""
services/grading/records.py

Typed records handed to the grading functions.

- Built once at the data-access boundary (services/result_service.py) from ORM rows.
- Immutable; the grading functions never touch the database.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ResultStatus(str, Enum):
    DRAFT = "DRAFT"
    APPROVED = "APPROVED"
    PUBLISHED = "PUBLISHED"

    @classmethod
    def of(cls, is_approved: bool, published: bool) -> "ResultStatus":
        if published:
            return cls.PUBLISHED
        if is_approved:
            return cls.APPROVED
        return cls.DRAFT


class ResultRecord(BaseModel):
    """One student's total for one subject in one period."""
    model_config = ConfigDict(frozen=True)

    result_id: Optional[int] = None
    student_id: int
    student_name: str = ""
    subject_id: int
    subject_name: str = ""
    period_id: int
    total: float
    grade: Optional[str] = None
    status: ResultStatus = ResultStatus.DRAFT
    class_id: Optional[int] = None
    class_name: Optional[str] = None


class PeriodWeight(BaseModel):
    model_config = ConfigDict(frozen=True)

    period_id: int
    name: str = ""
    weight: float = 1.0


class StudentRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: Optional[str] = None
