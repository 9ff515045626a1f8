"""
Tests for Best Effort Tracker

Tests for pace plausibility filtering and best-per-target retention.
"""

import pytest
from effort_worker.analysis.best_efforts import (
    ActivityMetadata,
    BestEffortTracker,
    format_duration,
    PaceBand,
    qualifies_for_best_efforts,
    reduce_best_efforts,
    target_label,
)
from effort_worker.analysis.errors import ShapeMismatchError
from effort_worker.analysis.segment_extractor import SegmentCandidate


def steady_run(sec_per_km, km=10):
    """Distance/time streams for a run at constant pace, one sample per km"""
    distance = [1000.0 * i for i in range(km + 1)]
    time = [float(sec_per_km) * i for i in range(km + 1)]
    return distance, time


def make_activity(activity_id, distance_m=10000.0):
    return ActivityMetadata(
        activity_id=activity_id,
        name=f"Run {activity_id}",
        start_date="2026-02-01T07:00:00Z",
        distance_m=distance_m,
        sport_type="Run",
        moving_time_sec=3000,
    )


def candidate(time_sec, distance_m=5000.0):
    return SegmentCandidate(
        start_index=0, end_index=5, time_sec=time_sec, distance_m=distance_m
    )


class TestFormatDuration:
    """Tests for [hh:]mm:ss formatting"""

    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (0, "00:00"),
            (2.5, "00:03"),
            (59.6, "01:00"),
            (200, "03:20"),
            (1000, "16:40"),
            (3725, "01:02:05"),
            (36000, "10:00:00"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestTargetLabel:
    """Tests for target labels"""

    def test_whole_kilometers(self):
        assert target_label(5000) == "5k"
        assert target_label(10000.0) == "10k"

    def test_fractional_kilometers(self):
        assert target_label(21097.5) == "21.0975k"
        assert target_label(1500) == "1.5k"


class TestActivityMetadata:
    """Tests for ActivityMetadata"""

    def test_from_strava_summary(self):
        activity = ActivityMetadata.from_dict(
            {
                "id": 1234,
                "name": "Lunch Run",
                "start_date": "2026-02-01T12:00:00Z",
                "distance": 8123.4,
                "sport_type": "Run",
                "moving_time": 2400,
            }
        )

        assert activity.activity_id == 1234
        assert activity.name == "Lunch Run"
        assert activity.distance_m == 8123.4
        assert activity.sport_type == "Run"
        assert activity.moving_time_sec == 2400

    def test_moving_time_is_converted(self):
        activity = ActivityMetadata.from_dict(
            {"id": 1, "distance": "5000", "moving_time": "1800"}
        )

        assert activity.distance_m == 5000.0
        assert activity.moving_time_sec == 1800.0

    def test_unreadable_distance_raises(self):
        with pytest.raises(ValueError):
            ActivityMetadata.from_dict({"id": 1, "distance": "n/a"})

    def test_falls_back_to_type(self):
        activity = ActivityMetadata.from_dict({"id": 1, "type": "Ride"})

        assert activity.sport_type == "Ride"
        assert activity.distance_m == 0.0


class TestQualifiesForBestEfforts:
    """Tests for the activity pre-filter"""

    def test_long_run_qualifies(self):
        assert qualifies_for_best_efforts(make_activity(1))

    def test_ride_does_not_qualify(self):
        ride = ActivityMetadata(activity_id=1, distance_m=40000, sport_type="Ride")

        assert not qualifies_for_best_efforts(ride)

    def test_short_run_does_not_qualify(self):
        assert not qualifies_for_best_efforts(make_activity(1, distance_m=2000))

    def test_brief_run_does_not_qualify(self):
        run = ActivityMetadata(
            activity_id=1, distance_m=5000, sport_type="run", moving_time_sec=300
        )

        assert not qualifies_for_best_efforts(run)

    def test_custom_sport_types(self):
        ride = ActivityMetadata(activity_id=1, distance_m=40000, sport_type="Ride")

        assert qualifies_for_best_efforts(ride, sport_types={"ride"})


class TestPaceBand:
    """Tests for PaceBand"""

    def test_bounds_are_inclusive(self):
        band = PaceBand(150, 900)

        assert band.contains(150)
        assert band.contains(900)
        assert not band.contains(149.9)
        assert not band.contains(900.1)

    def test_empty_band_raises(self):
        with pytest.raises(ValueError, match="Pace band is empty"):
            PaceBand(600, 300)


class TestBestEffortTracker:
    """Tests for BestEffortTracker"""

    def test_scenario_5k(self):
        tracker = BestEffortTracker(targets_m=[5000])
        distance, time = steady_run(200, km=5)

        tracker.process_activity(make_activity(1, 5000), distance, time)

        effort = tracker.best_efforts[5000.0]
        assert effort.time_sec == pytest.approx(1000)
        assert effort.pace_sec_per_km == pytest.approx(200)
        assert tracker.results() == {
            "5k": {
                "activity_id": 1,
                "activity_name": "Run 1",
                "start_date": "2026-02-01T07:00:00Z",
                "segment_time": "16:40",
                "pace_per_km": "03:20",
                "activity_distance_km": 5.0,
            }
        }

    @pytest.mark.parametrize("order", [("slow", "fast"), ("fast", "slow")])
    def test_faster_activity_wins_in_any_order(self, order):
        runs = {"slow": steady_run(300), "fast": steady_run(240)}
        tracker = BestEffortTracker(targets_m=[5000, 10000])

        for activity_id in order:
            distance, time = runs[activity_id]
            tracker.process_activity(make_activity(activity_id), distance, time)

        assert tracker.best_efforts[5000.0].activity_id == "fast"
        assert tracker.best_efforts[10000.0].activity_id == "fast"
        assert tracker.best_efforts[10000.0].time_sec == pytest.approx(2400)

    def test_offer_reports_replacement(self):
        tracker = BestEffortTracker(targets_m=[5000])

        assert tracker.offer(5000.0, make_activity("a"), candidate(1500))
        assert tracker.offer(5000.0, make_activity("b"), candidate(1400))
        assert not tracker.offer(5000.0, make_activity("c"), candidate(1450))
        assert tracker.best_efforts[5000.0].activity_id == "b"

    def test_equal_time_keeps_first(self):
        tracker = BestEffortTracker(targets_m=[5000])

        tracker.offer(5000.0, make_activity("a"), candidate(1500))
        tracker.offer(5000.0, make_activity("b"), candidate(1500))

        assert tracker.best_efforts[5000.0].activity_id == "a"

    def test_implausibly_fast_segment_is_discarded(self):
        """A GPS teleport giving 100 s/km should not become a best effort"""
        tracker = BestEffortTracker(targets_m=[5000])

        accepted = tracker.offer(5000.0, make_activity("gps"), candidate(500))

        assert not accepted
        assert tracker.best_efforts == {}

    def test_implausibly_slow_segment_is_discarded(self):
        tracker = BestEffortTracker(targets_m=[5000])

        assert not tracker.offer(5000.0, make_activity("rest"), candidate(5000))

    def test_none_candidate_is_ignored(self):
        tracker = BestEffortTracker(targets_m=[5000])

        assert not tracker.offer(5000.0, make_activity(1), None)

    def test_custom_pace_band(self):
        tracker = BestEffortTracker(targets_m=[5000], pace_band=PaceBand(60, 900))

        assert tracker.offer(5000.0, make_activity("bike"), candidate(500))

    def test_results_skip_targets_without_effort(self):
        tracker = BestEffortTracker(targets_m=[5000, 21097.5])
        distance, time = steady_run(300)

        tracker.process_activity(make_activity(1), distance, time)

        assert list(tracker.results()) == ["5k"]

    def test_results_follow_target_order(self):
        tracker = BestEffortTracker(targets_m=[10000, 5000])
        distance, time = steady_run(300)

        tracker.process_activity(make_activity(1), distance, time)

        assert list(tracker.results()) == ["10k", "5k"]

    def test_process_activity_propagates_shape_errors(self):
        tracker = BestEffortTracker(targets_m=[5000])

        with pytest.raises(ShapeMismatchError):
            tracker.process_activity(make_activity(1), [0, 1000], [0])

    def test_non_positive_target_raises(self):
        with pytest.raises(ValueError, match="must be positive"):
            BestEffortTracker(targets_m=[5000, 0])


class TestReduceBestEfforts:
    """Tests for the pure best-effort fold"""

    def test_fold_keeps_fastest_per_target(self):
        triples = [
            (5000, make_activity("a"), candidate(1500)),
            (5000, make_activity("b"), candidate(1300)),
            (10000, make_activity("a"), candidate(3100, 10000)),
            (5000, make_activity("c"), None),
        ]

        tracker = reduce_best_efforts(triples, targets_m=[5000, 10000])

        assert tracker.best_efforts[5000.0].activity_id == "b"
        assert tracker.best_efforts[10000.0].activity_id == "a"

    def test_fold_is_order_independent(self):
        triples = [
            (5000, make_activity("a"), candidate(1500)),
            (5000, make_activity("b"), candidate(1300)),
            (5000, make_activity("c"), candidate(1400)),
        ]

        forward = reduce_best_efforts(triples, targets_m=[5000])
        backward = reduce_best_efforts(reversed(triples), targets_m=[5000])

        assert forward.results() == backward.results()
