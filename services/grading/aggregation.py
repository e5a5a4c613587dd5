"""
services/grading/aggregation.py

Totals and averages.

- aggregate_components(): Result.total = sum of its component scores
- period_averages() / weighted_average(): progressive annual average over graded periods
- subject_cumulative_average(): one subject's mean across the session's periods
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping


def _get(item: Any, name: str):
    if isinstance(item, Mapping):
        return item[name]
    return getattr(item, name)


def aggregate_components(scores: Iterable) -> float:
    return float(sum(_get(s, "score") for s in scores))


def component_ceiling(components: Iterable) -> float:
    return float(sum(_get(c, "max_score") for c in components))


def over_ceiling(scores: Iterable, components: Iterable) -> List[int]:
    """Component ids whose score is above the component's max score."""
    ceilings = {_get(c, "id"): _get(c, "max_score") for c in components}
    return [
        _get(s, "component_id")
        for s in scores
        if _get(s, "component_id") in ceilings and _get(s, "score") > ceilings[_get(s, "component_id")]
    ]


def period_averages(results: Iterable) -> Dict[int, float]:
    """Mean total per period, for periods holding at least one result."""
    sums: Dict[int, float] = defaultdict(float)
    counts: Dict[int, int] = defaultdict(int)
    for r in results:
        sums[r.period_id] += r.total
        counts[r.period_id] += 1
    return {pid: sums[pid] / counts[pid] for pid in sums}


def weighted_average(results: Iterable, periods: Iterable) -> float:
    """
    sum(period average * weight) / sum(weight), over configured periods that
    already have results. Ungraded periods add nothing to either side, so a
    student is not pulled down by a term that has not been marked yet.
    """
    averages = period_averages(results)
    weighted_sum = 0.0
    total_weight = 0.0
    for period in periods:
        if period.period_id in averages:
            weighted_sum += averages[period.period_id] * period.weight
            total_weight += period.weight
    return weighted_sum / total_weight if total_weight > 0 else 0.0


def subject_cumulative_average(current_total: float, other_totals: Iterable[float]) -> float:
    totals = [current_total, *other_totals]
    return sum(totals) / len(totals)
