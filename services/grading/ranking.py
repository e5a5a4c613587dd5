"""
services/grading/ranking.py

Positions and class statistics for one cohort (class/session/period).

- Overall position: each student's average over all their subjects in the cohort.
- Subject position: students ranked by that subject's total alone.
- Ties keep insertion order and get consecutive positions unless the policy
  asks for shared positions (1, 1, 3).
- Averages are rounded to 2 places for output; ordering uses the raw values.
"""

from collections import OrderedDict
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from services.grading.records import ResultRecord

T = TypeVar("T")


class _Out(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StudentStanding(_Out):
    student_id: int
    student_name: str
    class_id: Optional[int] = None
    class_name: Optional[str] = None
    total_score: float
    subject_count: int
    average: float
    position: int
    total_students: int


class SubjectStanding(_Out):
    student_id: int
    student_name: str
    subject_id: int
    subject_name: str
    score: float
    grade: Optional[str] = None
    position: int
    total_students: int


class SubjectStats(_Out):
    subject_id: int
    subject_name: str
    highest: float
    lowest: float
    average: float
    total_students: int


class ClassStats(_Out):
    total_students: int = 0
    highest_average: float = 0
    lowest_average: float = 0
    class_average: float = 0
    subject_stats: List[SubjectStats] = []


class StudentPositions(_Out):
    student: Optional[StudentStanding] = None
    subject_positions: List[SubjectStanding] = []
    class_stats: ClassStats


class PositionReport(_Out):
    overall_positions: List[StudentStanding] = []
    subject_positions: Dict[int, List[SubjectStanding]] = {}
    class_stats: ClassStats = ClassStats()

    def for_student(self, student_id: int) -> StudentPositions:
        student = next((s for s in self.overall_positions if s.student_id == student_id), None)
        subjects = [
            p for positions in self.subject_positions.values()
            for p in positions if p.student_id == student_id
        ]
        return StudentPositions(student=student, subject_positions=subjects, class_stats=self.class_stats)


def rank(
    entries: Sequence[T],
    key: Callable[[T], float],
    share_tied_positions: bool = False,
) -> List[Tuple[int, T]]:
    """Sort descending by key and pair each entry with its 1-based position."""
    ordered = sorted(entries, key=key, reverse=True)   # stable: ties keep input order
    ranked = []
    for index, entry in enumerate(ordered):
        position = index + 1
        if share_tied_positions and index > 0 and key(entry) == key(ordered[index - 1]):
            position = ranked[-1][0]
        ranked.append((position, entry))
    return ranked


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_positions(results: Iterable[ResultRecord], share_tied_positions: bool = False) -> PositionReport:
    results = list(results)

    # ✅ per-student totals, in first-seen order
    students: "OrderedDict[int, dict]" = OrderedDict()
    for r in results:
        entry = students.setdefault(r.student_id, {
            "student_id": r.student_id,
            "student_name": r.student_name,
            "class_id": r.class_id,
            "class_name": r.class_name,
            "total_score": 0.0,
            "subject_count": 0,
        })
        entry["total_score"] += r.total
        entry["subject_count"] += 1
    for entry in students.values():
        entry["average"] = entry["total_score"] / entry["subject_count"]

    ranked_students = rank(list(students.values()), key=lambda e: e["average"],
                           share_tied_positions=share_tied_positions)
    overall = [
        StudentStanding(**{**e, "average": round(e["average"], 2)},
                        position=pos, total_students=len(ranked_students))
        for pos, e in ranked_students
    ]

    # ✅ per-subject positions
    by_subject: "OrderedDict[int, List[ResultRecord]]" = OrderedDict()
    for r in results:
        by_subject.setdefault(r.subject_id, []).append(r)

    subject_positions: Dict[int, List[SubjectStanding]] = {}
    subject_stats: List[SubjectStats] = []
    for subject_id, subject_results in by_subject.items():
        ranked = rank(subject_results, key=lambda r: r.total, share_tied_positions=share_tied_positions)
        subject_positions[subject_id] = [
            SubjectStanding(
                student_id=r.student_id,
                student_name=r.student_name,
                subject_id=r.subject_id,
                subject_name=r.subject_name,
                score=r.total,
                grade=r.grade,
                position=pos,
                total_students=len(ranked),
            )
            for pos, r in ranked
        ]
        totals = [r.total for r in subject_results]
        subject_stats.append(SubjectStats(
            subject_id=subject_id,
            subject_name=subject_results[0].subject_name,
            highest=max(totals),
            lowest=min(totals),
            average=round(_mean(totals), 2),
            total_students=len(totals),
        ))

    # ✅ class statistics (zeros for an empty cohort)
    averages = [e["average"] for _, e in ranked_students]
    class_stats = ClassStats(
        total_students=len(averages),
        highest_average=round(max(averages), 2) if averages else 0,
        lowest_average=round(min(averages), 2) if averages else 0,
        class_average=round(_mean(averages), 2),
        subject_stats=subject_stats,
    )

    return PositionReport(
        overall_positions=overall,
        subject_positions=subject_positions,
        class_stats=class_stats,
    )
