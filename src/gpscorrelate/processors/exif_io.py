"""
Photo EXIF access.
Reads the original capture time and any existing GPS tags through Pillow, and
writes correlated positions into the GPS IFD with piexif at the precision of
the source track. Writing swaps the Exif segment only; image data and every
other segment are copied unchanged.
"""

import os
import shutil
import struct
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import piexif
from PIL import ExifTags, Image, UnidentifiedImageError

from ..core.gps_track import GPSPoint
from ..exceptions import MetadataError
from ..utils.geo_utils import (
    rationals_to_degrees,
    to_degmin_rationals,
    to_dms_rationals,
    to_rational,
)
from ..utils.logger import get_logger


GPS_IFD = ExifTags.IFD.GPSInfo
EXIF_IFD = ExifTags.IFD.Exif
GPS = ExifTags.GPS

GPS_VERSION_ID = (2, 2, 0, 0)
MAX_ELEVATION_DECIMALS = 3  # beyond what consumer GPS can resolve

WRITABLE_FORMATS = ("JPEG",)

logger = get_logger(__name__)


@dataclass(frozen=True)
class PhotoTimestamp:
    """What the correlator needs from a photo before matching."""
    original_time: Optional[str]
    includes_gps: bool


@dataclass(frozen=True)
class PhotoGPSData:
    """GPS position already stored in a photo."""
    original_time: Optional[str]
    includes_gps: bool
    latitude: float = 0.0
    longitude: float = 0.0
    elevation: float = 0.0


@dataclass(frozen=True)
class PhotoGPSTime:
    """Capture time next to the GPS date/time stamp, for datestamp checks."""
    original_time: Optional[str]
    includes_gps: bool
    gps_time: Optional[str] = None


def _clean_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    value = str(value).strip("\x00 ").strip()
    return value or None


def _byte_value(value) -> int:
    if isinstance(value, bytes):
        return value[0] if value else 0
    if isinstance(value, (tuple, list)):
        return int(value[0]) if value else 0
    return int(value or 0)


def _load_exif(photo_path: str):
    """Return (exif, exif_ifd, gps_ifd) for a photo."""
    try:
        with Image.open(photo_path) as img:
            exif = img.getexif()
            exif_ifd = dict(exif.get_ifd(EXIF_IFD))
            gps_ifd = dict(exif.get_ifd(GPS_IFD))
    except (OSError, UnidentifiedImageError, SyntaxError) as e:
        raise MetadataError(f"Failed to read EXIF from {photo_path}: {e}") from e
    return exif, exif_ifd, gps_ifd


def _original_time(photo_path: str, exif, exif_ifd: dict) -> Optional[str]:
    original = _clean_text(exif_ifd.get(ExifTags.Base.DateTimeOriginal))
    if original is not None:
        return original

    # IFD0 DateTime is rewritten by editors, so it may not be the capture time
    modified = _clean_text(exif.get(ExifTags.Base.DateTime))
    if modified is not None:
        logger.warning(
            f"{photo_path}: no DateTimeOriginal, using DateTime {modified} "
            f"which may be the last edit time"
        )
    return modified


def _has_position(gps_ifd: dict) -> bool:
    latitude = gps_ifd.get(GPS.GPSLatitude)
    return isinstance(latitude, (tuple, list)) and len(latitude) >= 3


def read_photo_time(photo_path: str) -> PhotoTimestamp:
    """
    Read the capture timestamp and whether GPS tags are already present.

    Args:
        photo_path: Photo file

    Returns:
        PhotoTimestamp (original_time is None when the photo has no date)

    Raises:
        MetadataError: If the file cannot be opened as an image
    """
    exif, exif_ifd, gps_ifd = _load_exif(photo_path)
    return PhotoTimestamp(_original_time(photo_path, exif, exif_ifd), _has_position(gps_ifd))


def read_gps_data(photo_path: str) -> PhotoGPSData:
    """
    Read the position stored in a photo's GPS tags.

    Raises:
        MetadataError: If the file cannot be opened as an image
    """
    exif, exif_ifd, gps_ifd = _load_exif(photo_path)
    original_time = _original_time(photo_path, exif, exif_ifd)

    if not _has_position(gps_ifd) or not isinstance(gps_ifd.get(GPS.GPSLongitude), (tuple, list)):
        return PhotoGPSData(original_time, False)

    latitude = rationals_to_degrees(
        gps_ifd[GPS.GPSLatitude], _clean_text(gps_ifd.get(GPS.GPSLatitudeRef)) or "N"
    )
    longitude = rationals_to_degrees(
        gps_ifd[GPS.GPSLongitude], _clean_text(gps_ifd.get(GPS.GPSLongitudeRef)) or "E"
    )

    elevation = 0.0
    if GPS.GPSAltitude in gps_ifd:
        elevation = float(gps_ifd[GPS.GPSAltitude])
        if _byte_value(gps_ifd.get(GPS.GPSAltitudeRef)) == 1:
            elevation = -elevation

    return PhotoGPSData(original_time, True, latitude, longitude, elevation)


def read_gps_timestamp(photo_path: str) -> PhotoGPSTime:
    """
    Read the capture time and the GPS date/time stamp as one string.

    Raises:
        MetadataError: If the file cannot be opened as an image
    """
    exif, exif_ifd, gps_ifd = _load_exif(photo_path)
    original_time = _original_time(photo_path, exif, exif_ifd)

    date_stamp = _clean_text(gps_ifd.get(GPS.GPSDateStamp))
    time_stamp = gps_ifd.get(GPS.GPSTimeStamp)
    if not date_stamp or not isinstance(time_stamp, (tuple, list)) or len(time_stamp) < 3:
        return PhotoGPSTime(original_time, False)

    hours, minutes, seconds = (int(float(v)) for v in time_stamp[:3])
    gps_time = f"{date_stamp} {hours:02d}:{minutes:02d}:{seconds:02d}"
    return PhotoGPSTime(original_time, True, gps_time)


def build_gps_ifd(
    point: GPSPoint,
    datum: str = "WGS-84",
    degrees_minutes_seconds: bool = True
) -> dict:
    """
    Build a complete GPS IFD for a correlated point.

    Altitude is left out when the track had no elevation. Coordinates keep
    only the decimals the source data justified.

    Args:
        point: Correlated position
        datum: Map datum written to GPSMapDatum
        degrees_minutes_seconds: DD MM SS.SS when True, legacy DD MM.MM otherwise

    Returns:
        piexif GPS dictionary, rationals as (numerator, denominator) pairs
    """
    gps_ifd = {piexif.GPSIFD.GPSVersionID: GPS_VERSION_ID}
    if datum:
        gps_ifd[piexif.GPSIFD.GPSMapDatum] = datum

    if point.has_elevation:
        gps_ifd[piexif.GPSIFD.GPSAltitudeRef] = 1 if point.elevation < 0 else 0
        decimals = min(point.elevation_decimals, MAX_ELEVATION_DECIMALS)
        gps_ifd[piexif.GPSIFD.GPSAltitude] = to_rational(abs(point.elevation), decimals)

    if degrees_minutes_seconds:
        latitude = to_dms_rationals(point.latitude, point.latitude_decimals)
        longitude = to_dms_rationals(point.longitude, point.longitude_decimals)
    else:
        latitude = to_degmin_rationals(point.latitude)
        longitude = to_degmin_rationals(point.longitude)

    gps_ifd[piexif.GPSIFD.GPSLatitudeRef] = "S" if point.latitude < 0 else "N"
    gps_ifd[piexif.GPSIFD.GPSLatitude] = latitude
    gps_ifd[piexif.GPSIFD.GPSLongitudeRef] = "W" if point.longitude < 0 else "E"
    gps_ifd[piexif.GPSIFD.GPSLongitude] = longitude

    gps_ifd.update(_gps_time_tags(point.time))
    return gps_ifd


def _gps_time_tags(instant: int) -> dict:
    stamp = time.gmtime(instant)
    return {
        piexif.GPSIFD.GPSTimeStamp: ((stamp.tm_hour, 1), (stamp.tm_min, 1), (stamp.tm_sec, 1)),
        piexif.GPSIFD.GPSDateStamp: time.strftime("%Y:%m:%d", stamp),
    }


def _rewrite_exif(photo_path: str, update: Callable, keep_mtime: bool) -> bool:
    """
    Apply ``update`` to a photo's piexif dictionary and store it back.

    Only the Exif segment is replaced. The result is written to a temporary
    file beside the original and moved over it, so a failed write leaves the
    photo untouched and no temporary file behind.
    """
    path = Path(photo_path)
    tmp_name = None
    try:
        original_stat = path.stat()
        with Image.open(path) as img:
            image_format = img.format
        if image_format not in WRITABLE_FORMATS:
            logger.warning(f"Cannot write EXIF to {image_format} file {path}")
            return False

        exif_dict = piexif.load(str(path))
        update(exif_dict)
        exif_bytes = piexif.dump(exif_dict)

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=path.suffix)
        os.close(fd)
        piexif.insert(exif_bytes, str(path), tmp_name)
        shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
        tmp_name = None

        if keep_mtime:
            os.utime(path, ns=(path.stat().st_atime_ns, original_stat.st_mtime_ns))

    except (OSError, UnidentifiedImageError, ValueError, SyntaxError, struct.error) as e:
        logger.error(f"Failed to write EXIF to {path}: {e}")
        return False

    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)

    return True


def write_gps_data(
    photo_path: str,
    point: GPSPoint,
    datum: str = "WGS-84",
    degrees_minutes_seconds: bool = True,
    keep_mtime: bool = False
) -> bool:
    """
    Replace a photo's GPS tags with a correlated position.

    Returns:
        True on success, False if the photo could not be written
    """
    gps_ifd = build_gps_ifd(point, datum, degrees_minutes_seconds)

    def update(exif_dict):
        exif_dict["GPS"] = dict(gps_ifd)

    return _rewrite_exif(photo_path, update, keep_mtime)


def write_fixed_datestamp(photo_path: str, instant: int, keep_mtime: bool = True) -> bool:
    """
    Rewrite GPSDateStamp and GPSTimeStamp from a UTC instant.

    Returns:
        True on success
    """
    def update(exif_dict):
        exif_dict["GPS"].update(_gps_time_tags(instant))

    return _rewrite_exif(photo_path, update, keep_mtime)


def remove_gps_data(photo_path: str, keep_mtime: bool = False) -> bool:
    """
    Strip every GPS tag from a photo.

    Returns:
        True on success
    """
    def update(exif_dict):
        exif_dict["GPS"] = {}
        exif_dict["0th"].pop(piexif.ImageIFD.GPSTag, None)

    return _rewrite_exif(photo_path, update, keep_mtime)
