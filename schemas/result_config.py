from typing import List, Optional
from pydantic import Field, field_validator

from schemas.common import CamelModel
from services.grading.policy import GradeBand, validate_bands

# ==========================================================
# [input schemas]
# ==========================================================
class PeriodIn(CamelModel):
    name: str
    weight: float = Field(1, ge=0)


class ComponentIn(CamelModel):
    name: str
    key: str
    max_score: float = Field(..., gt=0)


class GradeBandIn(CamelModel):
    min_score: float
    max_score: float
    grade: str
    remark: str = ""


class ConfigurationIn(CamelModel):
    academic_year: str                      # academic session name, e.g. "2024/2025"
    periods: List[PeriodIn]
    assessment_components: List[ComponentIn]
    grading_scale: List[GradeBandIn]
    cumulative_enabled: bool = True
    cumulative_method: str = "progressive_average"
    show_cumulative_per_term: bool = True
    pass_mark: Optional[float] = Field(None, ge=0, le=100)

    @field_validator("grading_scale")
    @classmethod
    def _no_overlapping_ranges(cls, v):
        # GradeScaleError is a ValueError -> 422 with the offending grades
        validate_bands([GradeBand(**b.model_dump()) for b in v])
        return v


class ConfigurationUpdate(ConfigurationIn):
    id: int
