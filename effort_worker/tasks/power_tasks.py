"""
Power Estimation Tasks

Celery tasks for estimating ride power from streams and fitting CdA
against rides with measured power. Streams arrive already fetched.
"""

import logging
from typing import Any, Dict, List, Optional

from ..analysis import (
    compute_linear_terms,
    estimate_power as estimate_power_from_streams,
    evaluate_cda,
    fit_cda as fit_cda_from_rides,
    normalize_streams,
    PhysicalConfig,
    qualifies_for_cda_fit,
    RideRecord,
    smooth_altitude as smooth_altitude_samples,
    summarize_errors,
)
from . import app

logger = logging.getLogger(__name__)


@app.task(name="estimate_power")
def estimate_power(
    streams: Any,
    options: Optional[Dict[str, Any]] = None,
    smoothing_window: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Estimate average power for a ride recorded without a power meter.

    Args:
        streams: Raw stream payload (channel map, wrapped map or typed records)
        options: Physical config overrides, e.g. rider_kg, cda, wind_mps
        smoothing_window: Optional Savitzky-Golay window for altitude

    Returns:
        Dict containing:
            - summary: avg_power_watts, avg_speed_kmh, total_time_sec,
              total_distance_km, assumptions
    """
    try:
        summary = estimate_power_from_streams(streams, options, smoothing_window)

        logger.info(
            f"Power estimate complete. "
            f"Avg power: {summary.avg_power_watts:.1f}W, "
            f"Avg speed: {summary.avg_speed_kmh:.2f}km/h, "
            f"Distance: {summary.total_distance_km:.2f}km"
        )

        return {"success": True, "summary": summary.to_dict()}

    except Exception as e:
        logger.error(f"Error estimating power: {e}", exc_info=True)
        return {"success": False, "error": str(e)}


@app.task(name="smooth_altitude")
def smooth_altitude(altitudes: List[float], window_size: int = 5) -> List[float]:
    """
    Apply Savitzky-Golay filter to smooth noisy altitude data.

    Args:
        altitudes: List of raw altitude values
        window_size: Size of smoothing window (must be odd)

    Returns:
        List of smoothed altitude values
    """
    return smooth_altitude_samples(altitudes, window_size)


@app.task(name="fit_cda", bind=True)
def fit_cda(
    self,
    rides: List[Dict[str, Any]],
    options: Optional[Dict[str, Any]] = None,
    weight_by: str = "time",
) -> Dict[str, Any]:
    """
    Fit CdA across rides that carry a measured average power.

    Args:
        rides: List of dicts with:
            - activity: Ride summary (id, start_date, average_watts, device_watts)
            - streams: Raw stream payload with distance, time and
              optionally altitude/velocity
        options: Physical config overrides (cda is ignored)
        weight_by: Weight rides by "time" or "distance"

    Returns:
        Dict with fitted_cda, assumptions, error summary and per-ride evaluations
    """
    logger.info(f"[Task {self.request.id}] Starting fit_cda over {len(rides)} rides")

    try:
        config = PhysicalConfig.from_overrides(options)

        records = []
        for ride in rides:
            activity = ride.get("activity", {})
            activity_id = activity.get("id")
            try:
                if not qualifies_for_cda_fit(activity):
                    logger.info(
                        f"[Task {self.request.id}] Ride {activity_id} does not qualify for fitting"
                    )
                    continue
                streams = normalize_streams(ride.get("streams"))
            except (ValueError, TypeError) as e:
                logger.warning(
                    f"[Task {self.request.id}] Skipping ride {activity_id}: {e}"
                )
                continue

            terms = compute_linear_terms(streams, config)
            if terms is None:
                logger.warning(
                    f"[Task {self.request.id}] Skipping ride {activity_id}: no usable samples"
                )
                continue

            records.append(
                RideRecord(
                    activity_id=activity_id,
                    start_date=activity.get("start_date"),
                    target_watts=float(activity["average_watts"]),
                    terms=terms,
                    device_watts=activity.get("device_watts"),
                )
            )

        if not records:
            return {
                "success": False,
                "error": "No activities had usable streams for fitting",
            }

        fitted = fit_cda_from_rides(records, weight_by)
        evaluations = evaluate_cda(records, fitted)

        assumptions = config.to_dict()
        assumptions.pop("cda")
        assumptions.update(weight_by=weight_by, activity_count=len(evaluations))

        logger.info(
            f"[Task {self.request.id}] Fitted CdA {fitted:.4f} from {len(records)} rides"
        )

        return {
            "success": True,
            "fitted_cda": round(fitted, 4),
            "assumptions": assumptions,
            "summary": summarize_errors(evaluations),
            "activities": [e.to_dict() for e in evaluations],
        }

    except Exception as e:
        logger.error(
            f"[Task {self.request.id}] Error fitting CdA: {e}",
            exc_info=True,
        )
        return {"success": False, "error": str(e)}
