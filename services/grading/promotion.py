from collections import defaultdict
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from services.grading.aggregation import weighted_average
from services.grading.policy import GradingPolicy
from services.grading.records import PeriodWeight, ResultRecord, StudentRecord


class PromotionCandidate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    name: str
    email: Optional[str] = None
    annual_average: float
    results_count: int
    is_eligible: bool


def evaluate_promotion(
    students: Iterable[StudentRecord],
    results: Iterable[ResultRecord],
    periods: Iterable[PeriodWeight],
    policy: GradingPolicy,
) -> List[PromotionCandidate]:
    """Annual weighted average per student, eligible when it reaches the pass mark."""
    periods = list(periods)
    by_student = defaultdict(list)
    for r in results:
        by_student[r.student_id].append(r)

    candidates = []
    for student in students:
        student_results = by_student.get(student.id, [])
        annual_average = weighted_average(student_results, periods)
        candidates.append(PromotionCandidate(
            id=student.id,
            name=student.name,
            email=student.email,
            annual_average=round(annual_average, 2),
            results_count=len(student_results),
            is_eligible=policy.is_passing(annual_average),
        ))
    return candidates
