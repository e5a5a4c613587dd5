import pytest

from services.grading.aggregation import (
    aggregate_components,
    component_ceiling,
    over_ceiling,
    period_averages,
    subject_cumulative_average,
    weighted_average,
)
from services.grading.records import PeriodWeight, ResultRecord


def result(period_id, total, subject_id=1, student_id=1):
    return ResultRecord(student_id=student_id, subject_id=subject_id, period_id=period_id, total=total)


PERIODS = [PeriodWeight(period_id=1, weight=1), PeriodWeight(period_id=2, weight=1), PeriodWeight(period_id=3, weight=1)]


def test_aggregate_components():
    assert aggregate_components([]) == 0
    assert aggregate_components([{"score": 15}, {"score": 20}]) == 35


def test_aggregate_components_reads_attributes():
    class Score:
        def __init__(self, score):
            self.score = score

    assert aggregate_components([Score(12.5), Score(60)]) == 72.5


def test_component_ceiling_and_over_ceiling():
    components = [{"id": 1, "max_score": 30}, {"id": 2, "max_score": 70}]
    assert component_ceiling(components) == 100
    scores = [{"component_id": 1, "score": 35}, {"component_id": 2, "score": 70}]
    assert over_ceiling(scores, components) == [1]


def test_period_averages_only_graded_periods():
    averages = period_averages([result(1, 60, 1), result(1, 80, 2), result(2, 90)])
    assert averages == {1: 70, 2: 90}


def test_weighted_average_invariant_to_weight_scaling():
    results = [result(1, 60), result(2, 75), result(3, 90)]
    doubled = [PeriodWeight(period_id=p.period_id, weight=p.weight * 2) for p in PERIODS]
    assert weighted_average(results, PERIODS) == pytest.approx(weighted_average(results, doubled))


def test_weighted_average_ignores_ungraded_periods():
    results = [result(2, 64), result(2, 70, subject_id=2)]
    assert weighted_average(results, PERIODS) == pytest.approx(67)


def test_weighted_average_without_results_is_zero():
    assert weighted_average([], PERIODS) == 0.0
    assert weighted_average([result(1, 80)], [PeriodWeight(period_id=1, weight=0)]) == 0.0


def test_weighted_average_skips_periods_outside_configuration():
    assert weighted_average([result(1, 80), result(9, 10)], PERIODS) == pytest.approx(80)


def test_weighted_average_end_to_end():
    # CA1 15 + Exam 60 in a weight-1 term, CA1 18 + Exam 70 in a weight-2 term
    p1 = aggregate_components([{"score": 15}, {"score": 60}])
    p2 = aggregate_components([{"score": 18}, {"score": 70}])
    assert (p1, p2) == (75, 88)
    periods = [PeriodWeight(period_id=1, weight=1), PeriodWeight(period_id=2, weight=2)]
    assert round(weighted_average([result(1, p1), result(2, p2)], periods), 2) == 83.67


def test_subject_cumulative_average():
    assert subject_cumulative_average(80, []) == 80
    assert subject_cumulative_average(80, [70, 90]) == pytest.approx(80)
    assert subject_cumulative_average(88, [75]) == pytest.approx(81.5)
