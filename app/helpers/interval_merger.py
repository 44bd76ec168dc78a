import math
from typing import Iterable, List, Sequence, Tuple

from app.exceptions import InvalidInput

Interval = Tuple[float, float]


def validate_interval(interval: Sequence[float]) -> Interval:
    """
    Check one raw [start, end] pair and return it as a tuple of floats.
    Raises InvalidInput for anything merge_intervals must not see:
    wrong arity, negative or non-finite values, start > end.
    """
    if not isinstance(interval, (list, tuple)) or len(interval) != 2:
        raise InvalidInput(f"Interval must be a [start, end] pair, got {interval!r}")

    try:
        start, end = float(interval[0]), float(interval[1])
    except (TypeError, ValueError):
        raise InvalidInput(f"Interval values must be numbers: {list(interval)}")

    if not (math.isfinite(start) and math.isfinite(end)):
        raise InvalidInput(f"Interval values must be finite: {list(interval)}")
    if start < 0 or end < 0:
        raise InvalidInput(f"Interval values must be non-negative: {list(interval)}")
    if start > end:
        raise InvalidInput(f"Interval start must not exceed end: {list(interval)}")

    return start, end


def merge_intervals(intervals: Iterable[Sequence[float]]) -> List[Interval]:
    """
    Merge watched ranges into the canonical set: sorted by start,
    no two ranges overlapping or touching.

    Example:
    [[0, 10], [5, 15], [20, 25]] -> [(0, 15), (20, 25)]

    Callers guarantee every pair is finite, non-negative and start <= end.
    The input is never mutated.
    """
    ordered = sorted((tuple(item) for item in intervals), key=lambda item: item[0])
    if not ordered:
        return []

    merged: List[Interval] = []
    current_start, current_end = ordered[0]

    for start, end in ordered[1:]:
        # touching ranges ([0, 10] and [10, 20]) merge too
        if start <= current_end:
            current_end = max(current_end, end)
        else:
            merged.append((current_start, current_end))
            current_start, current_end = start, end

    merged.append((current_start, current_end))
    return merged


def total_watched(intervals: Iterable[Sequence[float]]) -> float:
    return sum(end - start for start, end in intervals)
