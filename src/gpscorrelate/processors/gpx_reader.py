"""
GPX track reader.
Extracts timestamped track points, keeping the number of decimals each
coordinate was written with and marking the end of every track segment.
"""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, Optional

from ..core.gps_track import GPSTrack
from ..exceptions import TimestampParseError, TrackReadError
from ..utils.geo_utils import count_decimals, validate_gps_coordinates
from ..utils.logger import get_logger
from ..utils.time_utils import GPX_DATE_FORMAT, parse_timestamp


def _local_name(tag: str) -> str:
    """Strip the namespace from an ElementTree tag."""
    return tag.rsplit('}', 1)[-1] if isinstance(tag, str) else ""


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if _local_name(child.tag) == name and child.text is not None:
            return child.text.strip()
    return None


class GPXReader:
    """
    Reads one GPX file into a GPSTrack.

    Works with GPX 1.0 and 1.1 (and no namespace at all) by matching element
    local names. Track points lacking lat, lon or time are skipped.
    """

    def __init__(self, gpx_path: str):
        """
        Initialize reader.

        Args:
            gpx_path: Path to GPX file
        """
        self.gpx_path = Path(gpx_path)
        self.logger = get_logger(__name__)
        self.skipped_count = 0

    def read(self) -> GPSTrack:
        """
        Parse the file.

        Returns:
            Finalized GPSTrack

        Raises:
            TrackReadError: If the file is missing, malformed or not GPX
        """
        self.logger.info(f"Reading GPS data from {self.gpx_path}")

        try:
            root = ET.parse(self.gpx_path).getroot()
        except (OSError, ET.ParseError) as e:
            raise TrackReadError(f"Failed to parse GPX data from {self.gpx_path}: {e}") from e

        if _local_name(root.tag) != "gpx":
            raise TrackReadError(f"Invalid GPX file: {self.gpx_path}")

        track = GPSTrack()
        self.skipped_count = 0

        for segment in root.iter():
            if _local_name(segment.tag) != "trkseg":
                continue
            added = 0
            for element in segment:
                if _local_name(element.tag) == "trkpt" and self._add_track_point(track, element):
                    added += 1
            if added:
                track.end_segment()

        track.finalize()

        if self.skipped_count:
            self.logger.warning(
                f"Skipped {self.skipped_count} incomplete track points in {self.gpx_path}"
            )
        self.logger.info(f"Read {len(track)} track points from {self.gpx_path}")

        return track

    def _add_track_point(self, track: GPSTrack, element: ET.Element) -> bool:
        lat_text = element.get("lat")
        lon_text = element.get("lon")
        time_text = _child_text(element, "time")
        ele_text = _child_text(element, "ele")

        if lat_text is None or lon_text is None or time_text is None:
            self.skipped_count += 1
            return False

        try:
            latitude = float(lat_text)
            longitude = float(lon_text)
            timestamp = parse_timestamp(time_text, GPX_DATE_FORMAT)
            elevation = float(ele_text) if ele_text else None
        except (ValueError, TimestampParseError) as e:
            self.logger.debug(f"Unreadable track point in {self.gpx_path}: {e}")
            self.skipped_count += 1
            return False

        if not validate_gps_coordinates(latitude, longitude):
            self.logger.debug(f"Invalid GPS coordinates: lat={latitude}, lon={longitude}")
            self.skipped_count += 1
            return False

        track.add_point(
            timestamp,
            latitude,
            longitude,
            elevation,
            latitude_decimals=count_decimals(lat_text),
            longitude_decimals=count_decimals(lon_text),
            elevation_decimals=count_decimals(ele_text) if ele_text else 0,
        )
        return True


def read_gpx_files(gpx_paths: Iterable[str]) -> GPSTrack:
    """
    Read several GPX files into one logical track.

    Args:
        gpx_paths: GPX file paths, in the order given by the user

    Returns:
        Concatenated, finalized GPSTrack
    """
    return GPSTrack.concatenate(GPXReader(path).read() for path in gpx_paths)
