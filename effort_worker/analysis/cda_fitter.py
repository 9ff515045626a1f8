"""
CdA Fitter

Fits the aerodynamic drag area (CdA) that best reproduces the measured
average power of a set of rides. For a fixed physical config the modelled
average power of one ride is linear in CdA:

    P_avg = (A / T) * CdA + (B / T)

so a weighted least-squares fit over rides has a closed form.
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .best_efforts import ActivityMetadata
from .errors import CdaFitError
from .power_estimator import GRAVITY, PhysicalConfig, round_half_up, sample_at
from .streams import NormalizedStreams

logger = logging.getLogger(__name__)

RIDE_SPORT_TYPES = frozenset(
    {
        "ride",
        "virtualride",
        "gravelride",
        "ebikeride",
        "mountainbikeride",
        "roadbikeride",
    }
)
DEFAULT_MIN_RIDE_DISTANCE_M = 5000.0
DEFAULT_MIN_RIDE_DURATION_SEC = 900.0

WEIGHT_BY_OPTIONS = ("time", "distance")


@dataclass(frozen=True)
class LinearPowerTerms:
    """Integrated power terms of one ride: aero part A, everything else B"""

    aero_term: float
    base_term: float
    total_time_sec: float
    total_distance_m: float

    def predict_watts(self, cda: float) -> float:
        return (self.aero_term * cda + self.base_term) / self.total_time_sec


@dataclass(frozen=True)
class RideRecord:
    """A ride with its measured power and integrated terms"""

    activity_id: Any
    start_date: Optional[str]
    target_watts: float
    terms: LinearPowerTerms
    device_watts: Optional[bool] = None


@dataclass(frozen=True)
class RideEvaluation:
    activity_id: Any
    start_date: Optional[str]
    target_watts: float
    predicted_watts: float
    error_watts: float
    duration_sec: int
    distance_km: float
    device_watts: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def qualifies_for_cda_fit(
    activity: Dict[str, Any],
    sport_types: Iterable[str] = RIDE_SPORT_TYPES,
    min_distance_m: float = DEFAULT_MIN_RIDE_DISTANCE_M,
    min_duration_sec: float = DEFAULT_MIN_RIDE_DURATION_SEC,
) -> bool:
    """Check a ride summary has measured power and enough length to fit on"""
    allowed = {s.lower() for s in sport_types}
    sport = (activity.get("sport_type") or activity.get("type") or "").lower()
    if sport not in allowed:
        return False

    watts = activity.get("average_watts")
    if not isinstance(watts, (int, float)) or not math.isfinite(watts):
        return False

    meta = ActivityMetadata.from_dict(activity)
    if meta.distance_m < min_distance_m:
        return False
    if meta.moving_time_sec is not None and meta.moving_time_sec < min_duration_sec:
        return False
    return True


def compute_linear_terms(
    streams: NormalizedStreams, config: PhysicalConfig
) -> Optional[LinearPowerTerms]:
    """
    Integrate the CdA-proportional and CdA-independent power terms.

    Uses the same noise filters as the power estimator. Velocity is used when
    the sample is finite, otherwise distance over time.

    Returns:
        LinearPowerTerms, or None if distance/time is missing or nothing survives
    """
    distance = streams.distance
    time = streams.time
    velocity = streams.velocity
    altitude = streams.altitude

    if distance is None or time is None:
        return None

    mass = config.total_mass_kg
    roll_force = config.rolling_force_n
    eta = config.drivetrain_efficiency

    aero_term = 0.0
    base_term = 0.0
    total_time = 0.0
    total_distance = 0.0

    for i in range(1, len(distance)):
        dd = sample_at(distance, i) - sample_at(distance, i - 1)
        if not math.isfinite(dd) or dd < config.min_distance_step_m:
            continue
        dt = sample_at(time, i) - sample_at(time, i - 1)
        if not math.isfinite(dt) or dt <= 0:
            continue

        v = sample_at(velocity, i)
        if not math.isfinite(v):
            v = dd / dt
        if v < config.min_speed_mps:
            continue

        grade = 0.0
        if altitude is not None:
            rise = sample_at(altitude, i) - sample_at(altitude, i - 1)
            if math.isfinite(rise):
                grade = rise / dd

        gravity_force = mass * GRAVITY * grade
        aero_coeff = 0.5 * config.rho * (v + config.wind_mps) ** 2

        aero_term += aero_coeff * v * dt / eta
        base_term += (roll_force + gravity_force) * v * dt / eta
        total_time += dt
        total_distance += dd

    if total_time <= 0:
        return None

    return LinearPowerTerms(
        aero_term=aero_term,
        base_term=base_term,
        total_time_sec=total_time,
        total_distance_m=total_distance,
    )


def fit_cda(rides: Sequence[RideRecord], weight_by: str = "time") -> float:
    """
    Weighted least-squares CdA over rides.

    Args:
        rides: Rides with measured average power and integrated terms
        weight_by: "time" or "distance"

    Raises:
        ValueError: unknown weighting
        CdaFitError: no usable aero signal in the rides
    """
    if weight_by not in WEIGHT_BY_OPTIONS:
        raise ValueError(
            f"weight_by must be one of {', '.join(WEIGHT_BY_OPTIONS)}, got {weight_by!r}"
        )

    numerator = 0.0
    denominator = 0.0

    for ride in rides:
        terms = ride.terms
        a = terms.aero_term / terms.total_time_sec
        b = terms.base_term / terms.total_time_sec
        weight = (
            terms.total_distance_m if weight_by == "distance" else terms.total_time_sec
        )
        numerator += weight * a * (ride.target_watts - b)
        denominator += weight * a * a

    if not denominator:
        raise CdaFitError("Failed to fit CdA: rides carry no aerodynamic signal")

    cda = numerator / denominator
    if not math.isfinite(cda):
        raise CdaFitError("Failed to fit CdA: result is not finite")

    logger.debug(f"Fitted CdA {cda:.4f} over {len(rides)} rides (weight_by={weight_by})")
    return cda


def evaluate_cda(rides: Sequence[RideRecord], cda: float) -> List[RideEvaluation]:
    """Predict each ride's average power with the given CdA"""
    results = []
    for ride in rides:
        predicted = ride.terms.predict_watts(cda)
        results.append(
            RideEvaluation(
                activity_id=ride.activity_id,
                start_date=ride.start_date,
                target_watts=ride.target_watts,
                predicted_watts=round(predicted, 1),
                error_watts=round(predicted - ride.target_watts, 1),
                duration_sec=round_half_up(ride.terms.total_time_sec),
                distance_km=round(ride.terms.total_distance_m / 1000, 2),
                device_watts=ride.device_watts,
            )
        )
    return results


def summarize_errors(evaluations: Sequence[RideEvaluation]) -> Dict[str, float]:
    """Mean error, MAE and RMSE of the predictions"""
    if not evaluations:
        raise ValueError("No evaluations provided")

    errors = [e.error_watts for e in evaluations]
    n = len(errors)
    mean = sum(errors) / n
    mae = sum(abs(e) for e in errors) / n
    rmse = math.sqrt(sum(e * e for e in errors) / n)

    return {
        "count": n,
        "mean_error_watts": round(mean, 2),
        "mae_watts": round(mae, 2),
        "rmse_watts": round(rmse, 2),
    }
