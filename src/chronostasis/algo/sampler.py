from typing import Optional, Sequence

from ..core.types import PoseFrame, TemporalSample


def find_nearest(history: Sequence[PoseFrame], target_ms: float) -> Optional[TemporalSample]:
    """
    Returns the frame whose timestamp is closest to target_ms.

    Scans oldest -> newest and stops once the distance grows again. Only valid
    because history timestamps are non-decreasing; ties go to the earliest frame.
    """
    if not history:
        return None
    best = history[0]
    min_diff = abs(best.timestamp - target_ms)
    for frame in history[1:]:
        diff = abs(frame.timestamp - target_ms)
        if diff < min_diff:
            min_diff = diff
            best = frame
        elif diff > min_diff:
            break
    return TemporalSample(best, float(min_diff))


def find_nearest_linear(history: Sequence[PoseFrame], target_ms: float) -> Optional[TemporalSample]:
    """Full scan without early exit. Reference for find_nearest."""
    if not history:
        return None
    best = None
    min_diff = None
    for frame in history:
        diff = abs(frame.timestamp - target_ms)
        if min_diff is None or diff < min_diff:
            min_diff = diff
            best = frame
    return TemporalSample(best, float(min_diff))
