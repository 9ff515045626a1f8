"""
Power Estimator

Estimates average mechanical power for rides recorded without a power meter.
Power at each sample pair is modelled from the resistive forces on the
rider + bike system:

    P = (F_roll + F_aero + F_gravity) * v / eta

    F_roll    = m * g * crr
    F_aero    = 0.5 * rho * CdA * (v + wind)^2
    F_gravity = m * g * grade

and integrated over the pairs that survive the noise filters.
"""

import logging
import math
import numbers
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Mapping, Optional

from .errors import InsufficientDataError, NoValidSamplesError
from .streams import NormalizedStreams, normalize_streams, smooth_altitude

logger = logging.getLogger(__name__)

GRAVITY = 9.81  # m/s^2


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up"""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class PhysicalConfig:
    """Physical constants and noise thresholds for the power model"""

    rider_kg: float = 80.0
    bike_kg: float = 9.0
    cda: float = 0.32  # drag coefficient x frontal area, m^2
    crr: float = 0.004  # rolling resistance coefficient
    rho: float = 1.2  # air density, kg/m^3
    drivetrain_efficiency: float = 0.95
    wind_mps: float = 0.0  # constant headwind (negative = tailwind)
    min_speed_mps: float = 0.5
    min_distance_step_m: float = 1.0

    @classmethod
    def from_overrides(
        cls, overrides: Optional[Mapping[str, Any]] = None
    ) -> "PhysicalConfig":
        """
        Build a config from caller overrides merged onto the defaults.

        Args:
            overrides: Mapping of option name to value; None values are ignored

        Raises:
            ValueError: on unknown option names or out-of-range values
        """
        overrides = dict(overrides or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown physical config options: {', '.join(unknown)}")

        values = {k: float(v) for k, v in overrides.items() if v is not None}
        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not math.isfinite(value):
                raise ValueError(f"{f.name} must be finite, got {value}")
        if not 0 < self.drivetrain_efficiency <= 1:
            raise ValueError(
                f"drivetrain_efficiency must be in (0, 1], got {self.drivetrain_efficiency}"
            )
        if self.total_mass_kg <= 0:
            raise ValueError(f"Total mass must be positive, got {self.total_mass_kg}")

    @property
    def total_mass_kg(self) -> float:
        return self.rider_kg + self.bike_kg

    @property
    def rolling_force_n(self) -> float:
        return self.total_mass_kg * GRAVITY * self.crr

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class PowerSummary:
    """Average power estimate for one activity"""

    avg_power_watts: float
    avg_speed_kmh: float
    total_time_sec: int
    total_distance_km: float
    assumptions: Dict[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def sample_at(samples: Optional[List[Any]], index: int) -> float:
    """Return samples[index] as a float, or NaN if missing or not numeric"""
    if samples is None or index >= len(samples):
        return math.nan
    value = samples[index]
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return math.nan
    return float(value)


class PowerEstimator:
    """Integrates modelled power over an activity's distance channel"""

    def __init__(self, config: Optional[PhysicalConfig] = None):
        self.config = config or PhysicalConfig()

    def estimate(self, streams: NormalizedStreams) -> PowerSummary:
        """
        Estimate average power and speed for one activity.

        Args:
            streams: Normalized activity streams

        Returns:
            PowerSummary with the config echoed in assumptions

        Raises:
            InsufficientDataError: distance missing, or both time and velocity missing
            NoValidSamplesError: no sample pair survived filtering
        """
        cfg = self.config
        distance = streams.distance
        time = streams.time
        velocity = streams.velocity
        altitude = streams.altitude

        if distance is None or (time is None and velocity is None):
            raise InsufficientDataError(
                "Need at least distance + (time or velocity) streams"
            )

        mass = cfg.total_mass_kg
        roll_force = cfg.rolling_force_n

        total_work = 0.0
        total_time = 0.0
        total_distance = 0.0
        kept = 0

        for i in range(1, len(distance)):
            dd = sample_at(distance, i) - sample_at(distance, i - 1)
            if not math.isfinite(dd) or dd < cfg.min_distance_step_m:
                continue

            if time is not None:
                dt = sample_at(time, i) - sample_at(time, i - 1)
            else:
                v_sample = sample_at(velocity, i)
                dt = dd / v_sample if v_sample > 0 else math.nan
            if not math.isfinite(dt) or dt <= 0:
                continue

            v = sample_at(velocity, i) if velocity is not None else dd / dt
            if not math.isfinite(v) or v < cfg.min_speed_mps:
                continue

            grade = 0.0
            if altitude is not None:
                rise = sample_at(altitude, i) - sample_at(altitude, i - 1)
                if math.isfinite(rise):
                    grade = rise / dd

            aero_force = 0.5 * cfg.rho * cfg.cda * (v + cfg.wind_mps) ** 2
            gravity_force = mass * GRAVITY * grade
            power = (roll_force + aero_force + gravity_force) * v / cfg.drivetrain_efficiency

            if not math.isfinite(power):
                continue
            if power < 0:
                power = 0.0

            total_work += power * dt
            total_time += dt
            total_distance += dd
            kept += 1

        logger.debug(
            f"Power estimate kept {kept} of {max(len(distance) - 1, 0)} sample pairs"
        )

        if total_time <= 0:
            raise NoValidSamplesError("No valid data points to compute power")

        avg_power = total_work / total_time
        avg_speed = total_distance / total_time

        return PowerSummary(
            avg_power_watts=round(avg_power, 1),
            avg_speed_kmh=round(avg_speed * 3.6, 2),
            total_time_sec=round_half_up(total_time),
            total_distance_km=round(total_distance / 1000, 3),
            assumptions=cfg.to_dict(),
        )


def with_smoothed_altitude(
    streams: NormalizedStreams, window_size: int
) -> NormalizedStreams:
    """Return a copy of streams whose altitude channel has been smoothed"""
    altitude = streams.altitude
    if altitude is None:
        return streams
    values = [sample_at(altitude, i) for i in range(len(altitude))]
    if not all(math.isfinite(v) for v in values):
        logger.debug("Altitude channel has gaps; skipping smoothing")
        return streams

    channels = dict(streams.channels)
    channels["altitude"] = smooth_altitude(values, window_size)
    return NormalizedStreams(shape=streams.shape, channels=channels)


def estimate_power(
    payload: Any,
    overrides: Optional[Mapping[str, Any]] = None,
    smoothing_window: Optional[int] = None,
) -> PowerSummary:
    """
    Normalize a raw stream payload and estimate its average power.

    Args:
        payload: Raw stream payload in any supported shape
        overrides: Physical config overrides
        smoothing_window: Savitzky-Golay window for altitude, None to disable

    Returns:
        PowerSummary for the activity
    """
    config = PhysicalConfig.from_overrides(overrides)
    streams = normalize_streams(payload)
    if smoothing_window:
        streams = with_smoothed_altitude(streams, smoothing_window)
    return PowerEstimator(config).estimate(streams)
