"""
GPS track model: points with source precision and segment boundaries.
A track is built once by a reader, then only read by the correlator.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Iterator, List, Optional

from ..utils.geo_utils import haversine_distance
from ..utils.logger import get_logger


# elevation_decimals value meaning "no elevation in the source"
NO_ELEVATION = -1


@dataclass(frozen=True)
class GPSPoint:
    """Single track sample."""
    time: int  # UTC seconds
    latitude: float
    longitude: float
    elevation: float = 0.0
    latitude_decimals: int = 0
    longitude_decimals: int = 0
    elevation_decimals: int = NO_ELEVATION
    end_of_segment: bool = False
    is_marker: bool = False  # separator only, carries no position

    @property
    def has_elevation(self) -> bool:
        return self.elevation_decimals >= 0

    @classmethod
    def segment_marker(cls, time: int) -> 'GPSPoint':
        """Create a non-data point separating two logging sessions."""
        return cls(time, 0.0, 0.0, end_of_segment=True, is_marker=True)


class GPSTrack:
    """
    Ordered sequence of GPS points.

    Points are kept in the order the source listed them. They are usually
    sorted by time but duplicates and out-of-order samples are tolerated by
    the correlator, so nothing here sorts or deduplicates.
    """

    def __init__(self, points: Optional[Iterable[GPSPoint]] = None):
        self.points: List[GPSPoint] = list(points) if points is not None else []
        self.min_time: Optional[int] = None
        self.max_time: Optional[int] = None
        self.logger = get_logger(__name__)

        if self.points:
            self.finalize()

    def add_point(
        self,
        time: int,
        latitude: float,
        longitude: float,
        elevation: Optional[float] = None,
        latitude_decimals: int = 0,
        longitude_decimals: int = 0,
        elevation_decimals: int = 0
    ) -> GPSPoint:
        """
        Append a sample. A missing elevation is stored as 0 with NO_ELEVATION decimals.

        Call finalize() once all points are added.
        """
        if elevation is None:
            elevation, elevation_decimals = 0.0, NO_ELEVATION

        point = GPSPoint(
            time, latitude, longitude, elevation,
            latitude_decimals, longitude_decimals, elevation_decimals
        )
        self.points.append(point)
        return point

    def end_segment(self):
        """Flag the most recent point as the last of its logging session."""
        if self.points and not self.points[-1].end_of_segment:
            self.points[-1] = replace(self.points[-1], end_of_segment=True)

    def finalize(self):
        """Compute the time range, ignoring segment markers."""
        times = [p.time for p in self.points if not p.is_marker]
        if not times:
            self.min_time = self.max_time = None
            return

        self.min_time = min(times)
        self.max_time = max(times)
        self.logger.debug(
            f"Track range {self.min_time}..{self.max_time} over {len(self.points)} points"
        )

    @classmethod
    def concatenate(cls, tracks: Iterable['GPSTrack']) -> 'GPSTrack':
        """
        Join several tracks into one logical sequence.

        Each track's last point is flagged as a segment end; the result is not
        re-sorted.
        """
        combined = cls()
        for track in tracks:
            combined.points.extend(track.points)
            combined.end_segment()
        combined.finalize()
        return combined

    def segment_count(self) -> int:
        data = [p for p in self.points if not p.is_marker]
        if not data:
            return 0
        ends = sum(1 for p in data if p.end_of_segment)
        return ends if data[-1].end_of_segment else ends + 1

    def get_statistics(self) -> dict:
        """
        Get track statistics.

        Distance is summed within segments only.

        Returns:
            Dictionary with track statistics
        """
        data = [p for p in self.points if not p.is_marker]
        if not data:
            return {}
        if self.min_time is None:
            self.finalize()

        total_distance_m = 0.0
        for prev_pt, curr_pt in zip(data, data[1:]):
            if prev_pt.end_of_segment:
                continue
            total_distance_m += haversine_distance(
                prev_pt.latitude, prev_pt.longitude,
                curr_pt.latitude, curr_pt.longitude
            )

        return {
            'num_points': len(data),
            'num_segments': self.segment_count(),
            'duration_s': self.max_time - self.min_time,
            'total_distance_m': total_distance_m,
            'start_time': self.min_time,
            'end_time': self.max_time,
        }

    def __len__(self) -> int:
        """Return number of points in track."""
        return len(self.points)

    def __getitem__(self, idx: int) -> GPSPoint:
        """Get point by index."""
        return self.points[idx]

    def __iter__(self) -> Iterator[GPSPoint]:
        return iter(self.points)
