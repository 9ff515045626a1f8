"""
Segment Extractor

Finds the fastest contiguous window of an activity that covers a target
distance, using a two-pointer scan over the cumulative distance/time
channels. The trailing pointer is shared across start indices, so one
activity is scanned in linear time.

When the window overshoots the target, its time is trimmed back to exactly
the target distance by linear interpolation over the sample step that
follows the window end.
"""

import math
import numbers
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Optional, Sequence

from .errors import NonMonotonicStreamError, ShapeMismatchError


@dataclass(frozen=True)
class SegmentCandidate:
    """Fastest window of one activity covering a target distance"""

    start_index: int
    end_index: int
    time_sec: float
    distance_m: float

    @property
    def pace_sec_per_km(self) -> float:
        return self.time_sec / (self.distance_m / 1000)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def ensure_monotonic(samples: Sequence[float], name: str) -> None:
    """
    Check that a channel is finite and non-decreasing.

    Raises:
        NonMonotonicStreamError: on a non-finite sample or a backwards step
    """
    previous = -math.inf
    for index, value in enumerate(samples):
        if (
            isinstance(value, bool)
            or not isinstance(value, numbers.Real)
            or not math.isfinite(value)
        ):
            raise NonMonotonicStreamError(
                f"{name} stream has a non-finite sample at index {index}"
            )
        if value < previous:
            raise NonMonotonicStreamError(
                f"{name} stream decreases at index {index} ({previous} -> {value})"
            )
        previous = value


def validate_channels(distance: Sequence[float], time: Sequence[float]) -> None:
    """Reject distance/time pairs the window scan cannot trust"""
    if len(distance) != len(time):
        raise ShapeMismatchError(
            f"distance and time streams differ in length ({len(distance)} vs {len(time)})"
        )
    ensure_monotonic(distance, "distance")
    ensure_monotonic(time, "time")


def _scan(
    distance: Sequence[float], time: Sequence[float], target_m: float
) -> Optional[SegmentCandidate]:
    n = len(distance)
    best: Optional[SegmentCandidate] = None
    j = 0

    for i in range(n):
        if j < i:
            j = i
        while j < n and distance[j] - distance[i] < target_m:
            j += 1
        if j >= n:
            break

        segment_time = time[j] - time[i]

        # Overshoot leaves needed negative; trim using the next step's rate
        needed = target_m - (distance[j] - distance[i])
        if needed != 0 and j + 1 < n:
            step_distance = distance[j + 1] - distance[j]
            step_time = time[j + 1] - time[j]
            if step_distance > 0 and step_time > 0:
                segment_time += step_time * (needed / step_distance)

        if not math.isfinite(segment_time) or segment_time <= 0:
            continue
        if best is None or segment_time < best.time_sec:
            best = SegmentCandidate(
                start_index=i,
                end_index=j,
                time_sec=segment_time,
                distance_m=target_m,
            )

    return best


def best_window(
    distance: Sequence[float], time: Sequence[float], target_m: float
) -> Optional[SegmentCandidate]:
    """
    Find the minimum-time window covering target_m meters.

    Args:
        distance: Cumulative distance samples in meters
        time: Elapsed time samples in seconds, index-aligned with distance
        target_m: Target distance in meters

    Returns:
        SegmentCandidate, or None if no window reaches the target

    Raises:
        ShapeMismatchError: channels differ in length
        NonMonotonicStreamError: a channel goes backwards or has gaps
        ValueError: target_m is not positive
    """
    if not target_m > 0:
        raise ValueError(f"Target distance must be positive, got {target_m}")
    validate_channels(distance, time)
    return _scan(distance, time, target_m)


def best_windows(
    distance: Sequence[float], time: Sequence[float], targets_m: Iterable[float]
) -> Dict[float, Optional[SegmentCandidate]]:
    """Run best_window for several targets with a single validation pass"""
    targets = list(targets_m)
    for target in targets:
        if not target > 0:
            raise ValueError(f"Target distance must be positive, got {target}")
    validate_channels(distance, time)
    return {target: _scan(distance, time, target) for target in targets}
