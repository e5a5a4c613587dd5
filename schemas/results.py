from typing import List, Optional
from pydantic import Field

from schemas.common import CamelModel

# ==========================================================
# [input schemas]
# ==========================================================
class ComponentScoreIn(CamelModel):
    component_id: int                       # assessment_components.id
    score: float = Field(..., ge=0)         # score on that component


class ResultIn(CamelModel):
    student_id: int
    subject_id: int
    period_id: int
    session_id: int
    component_scores: List[ComponentScoreIn] = []
    teacher_comment: Optional[str] = None
    admin_comment: Optional[str] = None


class ResultUpsert(ResultIn):
    id: int                                 # result being replaced


class ResultBatch(CamelModel):
    results: List[ResultIn]                 # upserted by (student, subject, period, session)


class MarksUpdate(CamelModel):
    # marks / total_marks must arrive together; the router answers 400 otherwise
    marks: Optional[float] = None
    total_marks: Optional[float] = None
    remarks: Optional[str] = None
    is_approved: Optional[bool] = None


class PublishRequest(CamelModel):
    session_id: int
    period_id: int
    class_id: Optional[int] = None
