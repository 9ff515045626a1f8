"""
Best Effort Tasks

Celery task for finding the fastest segment per target distance across a
batch of already-fetched activities.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..analysis import (
    ActivityMetadata,
    BestEffortTracker,
    normalize_streams,
    PaceBand,
    qualifies_for_best_efforts,
    StreamAnalysisError,
)
from ..analysis.best_efforts import (
    DEFAULT_MAX_PACE_SEC_PER_KM,
    DEFAULT_MIN_ACTIVITY_DISTANCE_M,
    DEFAULT_MIN_ACTIVITY_DURATION_SEC,
    DEFAULT_MIN_PACE_SEC_PER_KM,
    DEFAULT_SPORT_TYPES,
    DEFAULT_TARGETS_M,
)
from . import app

logger = logging.getLogger(__name__)


@app.task(name="find_best_efforts", bind=True)
def find_best_efforts(
    self,
    activities: List[Dict[str, Any]],
    targets_m: Sequence[float] = DEFAULT_TARGETS_M,
    min_pace_sec_per_km: float = DEFAULT_MIN_PACE_SEC_PER_KM,
    max_pace_sec_per_km: float = DEFAULT_MAX_PACE_SEC_PER_KM,
    sport_types: Optional[Sequence[str]] = None,
    min_distance_m: float = DEFAULT_MIN_ACTIVITY_DISTANCE_M,
    min_duration_sec: float = DEFAULT_MIN_ACTIVITY_DURATION_SEC,
) -> Dict[str, Any]:
    """
    Find the fastest segment per target distance across activities.

    Args:
        activities: List of dicts with:
            - activity: Activity summary (id, name, start_date, distance,
              sport_type, moving_time)
            - streams: Raw stream payload with distance and time channels
        targets_m: Target distances in meters
        min_pace_sec_per_km: Fastest plausible pace
        max_pace_sec_per_km: Slowest plausible pace
        sport_types: Sport types to scan (default: runs only)
        min_distance_m: Minimum activity distance to scan
        min_duration_sec: Minimum activity moving time to scan

    Returns:
        Dict with best_efforts keyed by target label (e.g. "5k"), plus
        counts of scanned and skipped activities
    """
    logger.info(
        f"[Task {self.request.id}] Starting find_best_efforts over "
        f"{len(activities)} activities, targets={list(targets_m)}"
    )

    try:
        tracker = BestEffortTracker(
            targets_m=targets_m,
            pace_band=PaceBand(min_pace_sec_per_km, max_pace_sec_per_km),
        )
        allowed_sports = sport_types or DEFAULT_SPORT_TYPES

        scanned = 0
        skipped = 0

        for item in activities:
            summary = item.get("activity", {})
            try:
                activity = ActivityMetadata.from_dict(summary)
                if not qualifies_for_best_efforts(
                    activity, allowed_sports, min_distance_m, min_duration_sec
                ):
                    skipped += 1
                    continue

                streams = normalize_streams(item.get("streams"))
                distance, time = streams.distance, streams.time
                if distance is None or time is None:
                    raise StreamAnalysisError("Missing distance or time stream")
                tracker.process_activity(activity, distance, time)
            except (StreamAnalysisError, ValueError, TypeError) as e:
                logger.warning(
                    f"[Task {self.request.id}] Skipping activity {summary.get('id')}: {e}"
                )
                skipped += 1
                continue

            scanned += 1

        best_efforts = tracker.results()

        logger.info(
            f"[Task {self.request.id}] Best efforts complete. "
            f"Scanned: {scanned}, skipped: {skipped}, "
            f"found: {', '.join(best_efforts) or 'none'}"
        )

        return {
            "success": True,
            "best_efforts": best_efforts,
            "activities_scanned": scanned,
            "activities_skipped": skipped,
        }

    except Exception as e:
        logger.error(
            f"[Task {self.request.id}] Error finding best efforts: {e}",
            exc_info=True,
        )
        return {"success": False, "error": str(e)}
