import pytest

from services.grading.policy import GradeBand, GradeScaleError, GradingPolicy, resolve_grade, validate_bands


def band(lo, hi, grade, remark=""):
    return GradeBand(min_score=lo, max_score=hi, grade=grade, remark=remark)


SCALE = [band(70, 100, "A", "Excellent"), band(60, 69, "B"), band(50, 59, "C"), band(0, 49, "F")]


def test_resolve_grade_returns_matching_band():
    assert resolve_grade(75, SCALE).grade == "A"
    assert resolve_grade(75, SCALE).remark == "Excellent"
    assert resolve_grade(60, SCALE).grade == "B"
    assert resolve_grade(0, SCALE).grade == "F"


def test_resolve_grade_gap_and_out_of_range_give_none():
    assert resolve_grade(69.5, SCALE) is None
    assert resolve_grade(-1, SCALE) is None
    assert resolve_grade(101, SCALE) is None
    assert resolve_grade(50, []) is None


def test_resolve_grade_first_band_in_given_order_wins():
    overlapping = [band(0, 60, "LOW"), band(50, 100, "HIGH")]
    assert resolve_grade(55, overlapping).grade == "LOW"
    assert resolve_grade(55, list(reversed(overlapping))).grade == "HIGH"


def test_validate_bands_accepts_gaps_and_touching_bounds():
    validate_bands(SCALE)
    validate_bands([band(70, 100, "A"), band(60, 70, "B")])


def test_validate_bands_rejects_overlap():
    with pytest.raises(GradeScaleError, match="overlaps"):
        validate_bands([band(70, 100, "A"), band(60, 75, "B")])


def test_validate_bands_rejects_nested_range():
    with pytest.raises(GradeScaleError):
        validate_bands([band(0, 100, "ALL"), band(95, 99, "B"), band(40, 50, "C")])


def test_validate_bands_rejects_inverted_range():
    with pytest.raises(GradeScaleError, match="above max score"):
        validate_bands([band(80, 70, "A")])


def test_default_policy_uses_legacy_bands():
    policy = GradingPolicy.default()
    assert policy.resolve(95).grade == "A+"
    assert policy.resolve(90).grade == "A+"
    assert policy.resolve(89.5).grade == "A"
    assert policy.resolve(72).grade == "B"
    assert policy.resolve(50).grade == "D"
    assert policy.resolve(49.99).grade == "F"
    assert policy.pass_mark == 40


def test_policy_resolves_highest_band_regardless_of_row_order():
    rows = [
        {"min_score": 0, "max_score": 50, "grade": "F", "remark": "Fail"},
        {"min_score": 50, "max_score": 100, "grade": "P", "remark": "Pass"},
    ]
    policy = GradingPolicy.from_scale(rows)
    assert policy.resolve(50).grade == "P"


def test_from_scale_without_rows_falls_back_to_default_bands():
    policy = GradingPolicy.from_scale([], pass_mark=50)
    assert policy.resolve(91).grade == "A+"
    assert policy.pass_mark == 50


def test_pass_mark_boundary_is_inclusive():
    policy = GradingPolicy.default()
    assert policy.is_passing(39.9) is False
    assert policy.is_passing(40.0) is True
