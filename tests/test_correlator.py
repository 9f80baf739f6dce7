import pytest

from gpscorrelate.core.config import CorrelationConfig
from gpscorrelate.core.correlator import (
    CorrelationOutcome,
    CorrelationResult,
    Correlator,
    correlate,
)
from gpscorrelate.core.gps_track import GPSPoint, GPSTrack


INTERPOLATE = CorrelationConfig()
ROUND = CorrelationConfig(interpolate=False)


def test_single_point_exact_match(point, track):
    only = point(1000, 12.5, -3.25, ele=42.0, eos=True)
    result = correlate(1000, INTERPOLATE, track(only))

    assert result.outcome is CorrelationOutcome.EXACT_MATCH
    assert result.point == only


def test_exact_match_copies_point(point, track):
    first = point(0, 1.0, 2.0, ele=10.0, lat_dec=3, lon_dec=4, ele_dec=2)
    result = correlate(0, INTERPOLATE, track(first, point(100, 5.0, 6.0)))

    assert result.outcome is CorrelationOutcome.EXACT_MATCH
    assert result.point == first


def test_exact_match_on_final_point(point, track):
    last = point(100, 5.0, 6.0, eos=True)
    result = correlate(100, INTERPOLATE, track(point(0, 1.0, 2.0), last))

    assert result.outcome is CorrelationOutcome.EXACT_MATCH
    assert result.point == last


def test_interpolation_end_to_end(track):
    t = track(
        GPSPoint(0, 0.0, 0.0, latitude_decimals=2, longitude_decimals=2),
        GPSPoint(100, 1.0, 1.0, latitude_decimals=4, longitude_decimals=4),
    )
    result = correlate(50, INTERPOLATE, t)

    assert result.outcome is CorrelationOutcome.INTERPOLATED
    assert result.point.latitude == pytest.approx(0.5)
    assert result.point.longitude == pytest.approx(0.5)
    assert result.point.latitude_decimals == 2
    assert result.point.time == 50


def test_interpolation_converges_to_endpoints(point, track):
    first = point(0, 10.0, 20.0, ele=100.0)
    second = point(1000, 11.0, 21.0, ele=200.0)
    t = track(first, second)

    near_first = correlate(1, INTERPOLATE, t).point
    near_second = correlate(999, INTERPOLATE, t).point

    assert near_first.latitude == pytest.approx(10.001)
    assert near_first.longitude == pytest.approx(20.001)
    assert near_first.elevation == pytest.approx(100.1)
    assert near_second.latitude == pytest.approx(10.999)
    assert near_second.longitude == pytest.approx(20.999)
    assert near_second.elevation == pytest.approx(199.9)


def test_interpolation_uses_least_precise_decimals(point, track):
    t = track(
        point(0, 1.0, 1.0, ele=5.0, lat_dec=2, lon_dec=5, ele_dec=3),
        point(10, 2.0, 2.0, ele=6.0, lat_dec=4, lon_dec=3, ele_dec=1),
    )
    result = correlate(3, INTERPOLATE, t).point

    assert result.latitude_decimals == 2
    assert result.longitude_decimals == 3
    assert result.elevation_decimals == 1


def test_interpolation_without_elevation(point, track):
    result = correlate(5, INTERPOLATE, track(point(0, 1.0, 1.0), point(10, 2.0, 2.0))).point

    assert result.elevation == 0.0
    assert result.elevation_decimals == -1
    assert not result.has_elevation


def test_interpolation_blends_missing_elevation_as_zero(point, track):
    t = track(point(0, 1.0, 1.0), point(100, 2.0, 2.0, ele=100.0, ele_dec=1))
    result = correlate(50, INTERPOLATE, t).point

    assert result.elevation == pytest.approx(50.0)
    assert result.elevation_decimals == 1


@pytest.mark.parametrize("photo_time, expected_index", [
    (10, 0),
    (50, 0),
    (51, 1),
    (90, 1),
])
def test_rounding_picks_nearest_and_ties_go_early(point, track, photo_time, expected_index):
    points = [point(0, 1.0, 1.0), point(100, 2.0, 2.0)]
    result = correlate(photo_time, ROUND, track(*points))

    assert result.outcome is CorrelationOutcome.ROUNDED
    assert result.point == points[expected_index]


def test_narrow_bracket_never_too_far(point, track):
    t = track(point(0, 1.0, 1.0), point(10, 2.0, 2.0))

    interpolated = correlate(5, CorrelationConfig(max_gap_seconds=10), t)
    rounded = correlate(5, CorrelationConfig(max_gap_seconds=10, interpolate=False), t)

    assert interpolated.outcome is CorrelationOutcome.INTERPOLATED
    assert rounded.outcome is CorrelationOutcome.ROUNDED


def test_feather_rejects_photo_far_from_both_points(point, track):
    t = track(point(0, 1.0, 1.0), point(100, 2.0, 2.0))
    config = CorrelationConfig(max_gap_seconds=10)

    assert correlate(50, config, t) == CorrelationResult(CorrelationOutcome.TOO_FAR)
    assert correlate(5, config, t).outcome is CorrelationOutcome.INTERPOLATED
    assert correlate(90, config, t).outcome is CorrelationOutcome.INTERPOLATED
    assert correlate(50, CorrelationConfig(), t).outcome is CorrelationOutcome.INTERPOLATED


@pytest.mark.parametrize("photo_time, expected", [
    (10, CorrelationOutcome.INTERPOLATED),
    (11, CorrelationOutcome.TOO_FAR),
    (89, CorrelationOutcome.TOO_FAR),
    (90, CorrelationOutcome.INTERPOLATED),
])
def test_feather_bounds_are_exclusive(point, track, photo_time, expected):
    t = track(point(0, 1.0, 1.0), point(100, 2.0, 2.0))

    assert correlate(photo_time, CorrelationConfig(max_gap_seconds=10), t).outcome is expected


def test_segment_boundary_policy(point, track):
    t = track(point(100, 1.0, 1.0, eos=True), point(200, 2.0, 2.0))

    assert correlate(150, INTERPOLATE, t).outcome is CorrelationOutcome.NO_MATCH
    crossing = correlate(150, CorrelationConfig(between_segments=True), t)
    assert crossing.outcome is CorrelationOutcome.INTERPOLATED
    assert crossing.point.latitude == pytest.approx(1.5)


def test_photo_outside_track_range(point, track):
    t = track(point(100, 1.0, 1.0), point(200, 2.0, 2.0))

    assert correlate(99, INTERPOLATE, t).outcome is CorrelationOutcome.NO_MATCH
    assert correlate(201, INTERPOLATE, t).outcome is CorrelationOutcome.NO_MATCH
    assert correlate(99, INTERPOLATE, t).point is None


def test_duplicate_timestamps_are_skipped(point, track):
    t = track(point(100, 1.0, 1.0), point(100, 9.0, 9.0), point(200, 2.0, 2.0))
    result = correlate(150, INTERPOLATE, t)

    assert result.outcome is CorrelationOutcome.INTERPOLATED
    assert result.point.latitude == pytest.approx(5.5)


def test_out_of_order_pair_is_skipped(point, track):
    t = track(point(0, 0.0, 0.0), point(100, 1.0, 1.0), point(50, 3.0, 3.0), point(200, 6.0, 6.0))
    result = correlate(150, INTERPOLATE, t)

    assert result.outcome is CorrelationOutcome.INTERPOLATED
    assert result.point.latitude == pytest.approx(3.0 + 3.0 * 100 / 150)


def test_scan_stops_once_past_photo(point, track):
    t = track(
        point(0, 0.0, 0.0),
        point(100, 1.0, 1.0, eos=True),
        point(300, 3.0, 3.0),
        point(400, 4.0, 4.0),
    )
    assert correlate(200, INTERPOLATE, t).outcome is CorrelationOutcome.NO_MATCH


def test_pairs_touching_markers_are_skipped(point, track):
    t = track(point(0, 1.0, 1.0), GPSPoint.segment_marker(50), point(100, 2.0, 2.0))

    assert correlate(25, CorrelationConfig(between_segments=True), t).outcome is CorrelationOutcome.NO_MATCH


def test_empty_track_is_no_match():
    assert correlate(0, INTERPOLATE, GPSTrack()).outcome is CorrelationOutcome.NO_MATCH


def test_correlator_leaves_track_untouched(point, track):
    points = [point(0, 1.0, 1.0), point(100, 2.0, 2.0, eos=True)]
    t = track(*points)
    correlator = Correlator(INTERPOLATE)

    for photo_time in (0, 20, 100, 150):
        correlator.correlate(photo_time, t)

    assert t.points == points
    assert (t.min_time, t.max_time) == (0, 100)


def test_result_point_presence_is_enforced(point):
    with pytest.raises(ValueError):
        CorrelationResult(CorrelationOutcome.NO_MATCH, point(0))
    with pytest.raises(ValueError):
        CorrelationResult(CorrelationOutcome.INTERPOLATED)

    CorrelationResult(CorrelationOutcome.WRITE_FAILURE, point(0))


def test_outcome_symbols():
    assert "".join(o.symbol for o in CorrelationOutcome) == "./<-^w?!"
    assert CorrelationOutcome.ROUNDED.matched
    assert not CorrelationOutcome.WRITE_FAILURE.matched


def test_negative_gap_is_rejected():
    with pytest.raises(ValueError):
        CorrelationConfig(max_gap_seconds=-1)
