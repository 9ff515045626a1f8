"""
Best Effort Tracker

Keeps the fastest qualifying window per target distance across a set of
activities (e.g. fastest 5k and 10k inside any run). Candidates whose pace
falls outside a plausible band are discarded: GPS teleports produce
impossibly fast splits, and mislabelled rests impossibly slow ones.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .power_estimator import round_half_up
from .segment_extractor import SegmentCandidate, best_windows

DEFAULT_TARGETS_M = (5000.0, 10000.0)
DEFAULT_MIN_PACE_SEC_PER_KM = 150.0
DEFAULT_MAX_PACE_SEC_PER_KM = 900.0

# Activity pre-filter defaults
DEFAULT_SPORT_TYPES = frozenset({"run"})
DEFAULT_MIN_ACTIVITY_DISTANCE_M = 3000.0
DEFAULT_MIN_ACTIVITY_DURATION_SEC = 600.0


def format_duration(seconds: float) -> str:
    """Format seconds as [hh:]mm:ss, hours only when non-zero"""
    total = round_half_up(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def target_label(target_m: float) -> str:
    """Human-readable tag for a target distance, e.g. 5000 -> '5k'"""
    km = target_m / 1000
    if float(km).is_integer():
        return f"{int(km)}k"
    return f"{km:g}k"


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


@dataclass(frozen=True)
class ActivityMetadata:
    """Identifying details of the activity a segment came from"""

    activity_id: Any
    name: Optional[str] = None
    start_date: Optional[str] = None
    distance_m: float = 0.0
    sport_type: Optional[str] = None
    moving_time_sec: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ActivityMetadata":
        """Build from an activity summary record (Strava-style keys accepted)"""
        return cls(
            activity_id=data.get("id", data.get("activity_id")),
            name=data.get("name"),
            start_date=data.get("start_date"),
            distance_m=float(data.get("distance", data.get("distance_m")) or 0.0),
            sport_type=data.get("sport_type") or data.get("type"),
            moving_time_sec=_optional_float(
                data.get("moving_time", data.get("moving_time_sec"))
            ),
        )


def qualifies_for_best_efforts(
    activity: ActivityMetadata,
    sport_types: Iterable[str] = DEFAULT_SPORT_TYPES,
    min_distance_m: float = DEFAULT_MIN_ACTIVITY_DISTANCE_M,
    min_duration_sec: float = DEFAULT_MIN_ACTIVITY_DURATION_SEC,
) -> bool:
    """Check an activity is worth fetching streams for"""
    allowed = {s.lower() for s in sport_types}
    if (activity.sport_type or "").lower() not in allowed:
        return False
    if activity.distance_m < min_distance_m:
        return False
    if activity.moving_time_sec is not None and activity.moving_time_sec < min_duration_sec:
        return False
    return True


@dataclass(frozen=True)
class PaceBand:
    """Inclusive range of plausible paces in seconds per km"""

    min_sec_per_km: float = DEFAULT_MIN_PACE_SEC_PER_KM
    max_sec_per_km: float = DEFAULT_MAX_PACE_SEC_PER_KM

    def __post_init__(self):
        if self.min_sec_per_km > self.max_sec_per_km:
            raise ValueError(
                f"Pace band is empty ({self.min_sec_per_km} > {self.max_sec_per_km})"
            )

    def contains(self, pace_sec_per_km: float) -> bool:
        return self.min_sec_per_km <= pace_sec_per_km <= self.max_sec_per_km


@dataclass(frozen=True)
class BestEffort:
    """Fastest qualifying segment for one target distance"""

    target_m: float
    activity_id: Any
    activity_name: Optional[str]
    start_date: Optional[str]
    time_sec: float
    pace_sec_per_km: float
    activity_distance_km: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activity_id": self.activity_id,
            "activity_name": self.activity_name,
            "start_date": self.start_date,
            "segment_time": format_duration(self.time_sec),
            "pace_per_km": format_duration(self.pace_sec_per_km),
            "activity_distance_km": self.activity_distance_km,
        }


@dataclass
class BestEffortTracker:
    """Accumulates the best effort per target distance"""

    targets_m: Sequence[float] = DEFAULT_TARGETS_M
    pace_band: PaceBand = field(default_factory=PaceBand)
    best_efforts: Dict[float, BestEffort] = field(default_factory=dict)

    def __post_init__(self):
        self.targets_m = [float(t) for t in self.targets_m]
        for target in self.targets_m:
            if not target > 0:
                raise ValueError(f"Target distance must be positive, got {target}")

    def offer(
        self,
        target_m: float,
        activity: ActivityMetadata,
        candidate: Optional[SegmentCandidate],
    ) -> bool:
        """
        Offer one activity's fastest window for a target.

        Returns:
            True if the candidate became the new best effort
        """
        if candidate is None:
            return False

        pace = candidate.time_sec / (target_m / 1000)
        if not self.pace_band.contains(pace):
            return False

        current = self.best_efforts.get(target_m)
        if current is not None and candidate.time_sec >= current.time_sec:
            return False

        self.best_efforts[target_m] = BestEffort(
            target_m=target_m,
            activity_id=activity.activity_id,
            activity_name=activity.name,
            start_date=activity.start_date,
            time_sec=candidate.time_sec,
            pace_sec_per_km=pace,
            activity_distance_km=round(activity.distance_m / 1000, 2),
        )
        return True

    def process_activity(
        self,
        activity: ActivityMetadata,
        distance: Sequence[float],
        time: Sequence[float],
    ) -> Dict[float, bool]:
        """
        Scan one activity for every target and offer the results.

        Raises:
            ShapeMismatchError, NonMonotonicStreamError: streams unusable
        """
        windows = best_windows(distance, time, self.targets_m)
        return {
            target: self.offer(target, activity, candidate)
            for target, candidate in windows.items()
        }

    def results(self) -> Dict[str, Dict[str, Any]]:
        """Rendered best efforts keyed by target label, in target order"""
        output = {}
        for target in self.targets_m:
            effort = self.best_efforts.get(target)
            if effort is not None:
                output[target_label(target)] = effort.to_dict()
        return output


def reduce_best_efforts(
    candidates: Iterable[Tuple[float, ActivityMetadata, Optional[SegmentCandidate]]],
    targets_m: Sequence[float] = DEFAULT_TARGETS_M,
    pace_band: Optional[PaceBand] = None,
) -> BestEffortTracker:
    """Fold (target, activity, candidate) triples into a fresh tracker"""
    tracker = BestEffortTracker(targets_m=targets_m, pace_band=pace_band or PaceBand())
    for target_m, activity, candidate in candidates:
        tracker.offer(float(target_m), activity, candidate)
    return tracker
