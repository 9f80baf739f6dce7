"""
Temporal correlation of a photo timestamp against a GPS track.

The correlator walks consecutive point pairs looking for the bracket that
contains the photo time, then copies, rounds to or interpolates between the
bracket points. Every expected condition is returned as an outcome value.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import CorrelationConfig
from .gps_track import GPSPoint, GPSTrack, NO_ELEVATION
from ..utils.geo_utils import interpolate_value
from ..utils.logger import get_logger


class CorrelationOutcome(Enum):
    """Result classification for one photo, with its progress legend character."""
    EXACT_MATCH = "."
    INTERPOLATED = "/"
    ROUNDED = "<"
    NO_MATCH = "-"
    TOO_FAR = "^"
    WRITE_FAILURE = "w"
    NO_INPUT_TIMESTAMP = "?"
    GPS_ALREADY_PRESENT = "!"

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def matched(self) -> bool:
        """True for the outcomes that produced a position from the track."""
        return self in (
            CorrelationOutcome.EXACT_MATCH,
            CorrelationOutcome.INTERPOLATED,
            CorrelationOutcome.ROUNDED,
        )

    @property
    def carries_point(self) -> bool:
        return self.matched or self is CorrelationOutcome.WRITE_FAILURE


@dataclass(frozen=True)
class CorrelationResult:
    """Outcome plus the produced point (None for the failure outcomes)."""
    outcome: CorrelationOutcome
    point: Optional[GPSPoint] = None

    def __post_init__(self):
        if self.outcome.carries_point and self.point is None:
            raise ValueError(f"{self.outcome.name} requires a point")
        if not self.outcome.carries_point and self.point is not None:
            raise ValueError(f"{self.outcome.name} cannot carry a point")


def bracket_scale(first: GPSPoint, second: GPSPoint, photo_time: int) -> float:
    """Relative position of photo_time between two points: 0 at first, 1 at second."""
    return (float(photo_time) - float(first.time)) / (float(second.time) - float(first.time))


def round_to_nearest(first: GPSPoint, second: GPSPoint, photo_time: int) -> GPSPoint:
    """
    Pick whichever bracket point is closer in time.

    Equidistant photos take the earlier point. Points are immutable so the
    chosen one is returned as is.
    """
    return first if bracket_scale(first, second, photo_time) <= 0.5 else second


def interpolate_point(first: GPSPoint, second: GPSPoint, photo_time: int) -> GPSPoint:
    """
    Linearly interpolate position and elevation at photo_time.

    The result never claims more decimals than the least precise endpoint.
    A missing elevation blends as 0.
    """
    scale = bracket_scale(first, second, photo_time)

    elevation_decimals = [p.elevation_decimals for p in (first, second) if p.has_elevation]

    return GPSPoint(
        time=photo_time,
        latitude=interpolate_value(first.latitude, second.latitude, scale),
        longitude=interpolate_value(first.longitude, second.longitude, scale),
        elevation=interpolate_value(first.elevation, second.elevation, scale),
        latitude_decimals=min(first.latitude_decimals, second.latitude_decimals),
        longitude_decimals=min(first.longitude_decimals, second.longitude_decimals),
        elevation_decimals=min(elevation_decimals) if elevation_decimals else NO_ELEVATION,
    )


class Correlator:
    """
    Matches photo times to track positions.

    The correlator holds only its configuration; the track is passed to each
    call and never modified, so one instance can serve many threads.
    """

    def __init__(self, config: Optional[CorrelationConfig] = None):
        self.config = config or CorrelationConfig()
        self.logger = get_logger(__name__)

    def correlate(self, photo_time: int, track: GPSTrack) -> CorrelationResult:
        """
        Find the track position for a photo.

        Complexity: O(n) linear scan, stopping at the first terminal pair

        Args:
            photo_time: UTC seconds, already corrected for zone and offset
            track: Finalized track

        Returns:
            CorrelationResult
        """
        if not track.points or track.min_time is None:
            return CorrelationResult(CorrelationOutcome.NO_MATCH)

        # Not logging when the photo was taken
        if photo_time < track.min_time or photo_time > track.max_time:
            return CorrelationResult(CorrelationOutcome.NO_MATCH)

        points = track.points
        max_gap = self.config.max_gap_seconds

        for current, following in zip(points, points[1:]):
            if current.time >= following.time:
                continue
            if current.is_marker or following.is_marker:
                continue
            if current.end_of_segment and not self.config.between_segments:
                continue

            # Walked past the photo without finding a bracket
            if current.time > photo_time:
                return CorrelationResult(CorrelationOutcome.NO_MATCH)

            inside = current.time < photo_time < following.time

            if max_gap and inside:
                if current.time + max_gap < photo_time < following.time - max_gap:
                    self.logger.debug(
                        f"Photo at {photo_time} is more than {max_gap}s from "
                        f"{current.time} and {following.time}"
                    )
                    return CorrelationResult(CorrelationOutcome.TOO_FAR)

            if photo_time == current.time:
                return CorrelationResult(CorrelationOutcome.EXACT_MATCH, current)

            if inside:
                if not self.config.interpolate:
                    return CorrelationResult(
                        CorrelationOutcome.ROUNDED,
                        round_to_nearest(current, following, photo_time)
                    )

                if current.has_elevation != following.has_elevation:
                    self.logger.debug(
                        f"Interpolating elevation at {photo_time} against a point without elevation"
                    )
                return CorrelationResult(
                    CorrelationOutcome.INTERPOLATED,
                    interpolate_point(current, following, photo_time)
                )

        # The final point has no successor to pair with
        last = points[-1]
        if not last.is_marker and last.time == photo_time:
            return CorrelationResult(CorrelationOutcome.EXACT_MATCH, last)

        return CorrelationResult(CorrelationOutcome.NO_MATCH)


def correlate(photo_time: int, config: CorrelationConfig, track: GPSTrack) -> CorrelationResult:
    """Correlate a single photo time; see Correlator.correlate()."""
    return Correlator(config).correlate(photo_time, track)
