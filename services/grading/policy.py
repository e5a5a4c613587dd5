"""
services/grading/policy.py

Grade scale resolution and the GradingPolicy value object.

- resolve_grade(): first band (in the given order) whose range contains the score.
- validate_bands(): rejects inverted or overlapping ranges, used when a school saves its scale.
- GradingPolicy: the school's bands + pass mark, passed into every computation.
  Sessions without a configured scale fall back to settings.DEFAULT_GRADE_BANDS.
"""

from typing import Iterable, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from config.settings import settings


class GradeScaleError(ValueError):
    """Raised for a grading scale that cannot be resolved deterministically."""


class GradeBand(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    min_score: float
    max_score: float
    grade: str
    remark: Optional[str] = None

    def contains(self, score: float) -> bool:
        return self.min_score <= score <= self.max_score


def resolve_grade(score: float, bands: Iterable[GradeBand]) -> Optional[GradeBand]:
    # Scores outside every range (gaps, negatives, >100) get no grade.
    for band in bands:
        if band.contains(score):
            return band
    return None


def validate_bands(bands: Sequence[GradeBand]) -> None:
    """
    Check a school's scale before it is stored.

    Ranges may leave gaps and may touch at a bound (70-80 and 80-90), but may
    not overlap beyond that.
    """
    for band in bands:
        if band.min_score > band.max_score:
            raise GradeScaleError(
                f"Grade {band.grade}: min score {band.min_score} is above max score {band.max_score}"
            )

    ordered = sorted(bands, key=lambda b: (b.min_score, b.max_score))
    widest = None
    for band in ordered:
        if widest is not None and band.min_score < widest.max_score:
            raise GradeScaleError(
                f"Grade {band.grade} ({band.min_score}-{band.max_score}) overlaps "
                f"grade {widest.grade} ({widest.min_score}-{widest.max_score})"
            )
        if widest is None or band.max_score > widest.max_score:
            widest = band


class GradingPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    bands: Tuple[GradeBand, ...]
    pass_mark: float
    share_tied_positions: bool = False

    @classmethod
    def default(cls, pass_mark: Optional[float] = None) -> "GradingPolicy":
        bands = tuple(
            GradeBand(min_score=lo, max_score=hi, grade=grade, remark=remark)
            for lo, hi, grade, remark in settings.DEFAULT_GRADE_BANDS
        )
        return cls(
            bands=bands,
            pass_mark=settings.DEFAULT_PASS_MARK if pass_mark is None else pass_mark,
            share_tied_positions=settings.SHARE_TIED_POSITIONS,
        )

    @classmethod
    def from_scale(cls, rows: Iterable, pass_mark: Optional[float] = None) -> "GradingPolicy":
        """Build from GradingScale rows (ORM objects or dicts)."""
        bands = tuple(GradeBand.model_validate(row) for row in rows)
        if not bands:
            return cls.default(pass_mark)
        return cls(
            bands=bands,
            pass_mark=settings.DEFAULT_PASS_MARK if pass_mark is None else pass_mark,
            share_tied_positions=settings.SHARE_TIED_POSITIONS,
        )

    def resolve(self, score: float) -> Optional[GradeBand]:
        # Highest band first, so a score on a shared bound takes the better grade.
        ordered = sorted(self.bands, key=lambda b: b.min_score, reverse=True)
        return resolve_grade(score, ordered)

    def is_passing(self, average: float) -> bool:
        return average >= self.pass_mark
