import math
from typing import Iterable, Sequence

from app.exceptions import InvalidInput
from app.helpers.interval_merger import total_watched

# progress_percent is stored in a 32-bit Integer column
MAX_PERCENT = 2**31 - 1


def round_half_up(value: float) -> int:
    # 12.5 -> 13, same as Math.round for the non-negative values we get here
    return int(math.floor(value + 0.5))


def compute_percent(
    merged_intervals: Iterable[Sequence[float]],
    video_duration: float,
    clamp: bool = False,
) -> int:
    """
    Percentage of the video covered by the (already merged) watched ranges.

    Not clamped by default: ranges reported past the duration can push the
    result above 100. With clamp=True the result stays within [0, 100].
    Raises InvalidInput when the result cannot be stored.
    """
    if video_duration is None or not math.isfinite(video_duration) or video_duration <= 0:
        raise InvalidInput(f"videoDuration must be a positive number, got {video_duration}")

    ratio = total_watched(merged_intervals) / video_duration * 100
    if not math.isfinite(ratio):
        raise InvalidInput(
            f"Watched time is out of range for videoDuration {video_duration}"
        )

    percent = round_half_up(ratio)

    if clamp:
        percent = max(0, min(100, percent))
    if percent > MAX_PERCENT:
        raise InvalidInput(
            f"Progress of {percent}% is out of range for videoDuration {video_duration}"
        )
    return percent
