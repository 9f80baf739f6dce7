"""
Timestamp parsing and time-zone utilities.
All instants are integer UTC seconds since the epoch, computed from calendar
fields with calendar.timegm so the host time zone never leaks in.
"""

import calendar
import math
import re
import time
from datetime import datetime, timezone, tzinfo
from typing import NamedTuple, Optional, Pattern

from ..exceptions import TimestampParseError


# "2005:02:21 14:03:17" as written in Exif DateTimeOriginal
EXIF_DATE_FORMAT: Pattern = re.compile(
    r"^\s*(\d{1,4}):(\d{1,2}):(\d{1,2})[ T](\d{1,2}):(\d{1,2}):(\d{1,2})"
)

# "2005-02-21T03:03:17Z", fractional seconds and numeric offsets tolerated
GPX_DATE_FORMAT: Pattern = re.compile(
    r"^\s*(\d{1,4})-(\d{1,2})-(\d{1,2})T(\d{1,2}):(\d{1,2}):(\d{1,2})"
    r"(?:[.,]\d+)?\s*(Z|[+-]\d{2}:?\d{2})?"
)

# Largest real UTC offset; bigger camera clock errors go through the photo offset
MAX_OFFSET_HOURS = 14

_OFFSET_PATTERN = re.compile(r"^\s*([+-])?(\d{1,2})(?::(\d{1,2}))?\s*$")


class TimeZoneOffset(NamedTuple):
    """Fixed offset of photo local time from UTC."""
    hours: int = 0
    minutes: int = 0

    @property
    def seconds(self) -> int:
        return self.hours * 3600 + self.minutes * 60

    @classmethod
    def parse(cls, text: str) -> 'TimeZoneOffset':
        """
        Parse an offset written as ``+HH``, ``-HH:MM`` or ``HH:MM``.

        The sign applies to both the hours and the minutes.

        Raises:
            ValueError: If the text is not a valid offset
        """
        match = _OFFSET_PATTERN.match(text or "")
        if match is None:
            raise ValueError(f"Invalid time zone offset: {text!r}")

        sign = -1 if match.group(1) == "-" else 1
        hours = int(match.group(2))
        minutes = int(match.group(3) or 0)
        if hours > MAX_OFFSET_HOURS or minutes > 59:
            raise ValueError(
                f"Time zone offset out of range (at most {MAX_OFFSET_HOURS}:59): {text!r}"
            )

        return cls(sign * hours, sign * minutes)

    def __str__(self) -> str:
        sign = "-" if self.seconds < 0 else "+"
        return f"{sign}{abs(self.hours):02d}:{abs(self.minutes):02d}"


def parse_timestamp(
    text: str,
    fmt: Pattern = EXIF_DATE_FORMAT,
    offset: Optional[TimeZoneOffset] = None
) -> int:
    """
    Convert a textual timestamp into UTC epoch seconds.

    The fields are read as UTC, then the zone offset is subtracted so that a
    local-looking time becomes UTC.

    Args:
        text: Timestamp string
        fmt: EXIF_DATE_FORMAT or GPX_DATE_FORMAT
        offset: Offset of the text's zone from UTC

    Returns:
        Seconds since the epoch

    Raises:
        TimestampParseError: If the text does not match the format
    """
    if text is None:
        raise TimestampParseError("No timestamp given")

    match = fmt.match(text)
    if match is None:
        raise TimestampParseError(f"Unrecognised timestamp: {text!r}")

    fields = tuple(int(value) for value in match.groups()[:6])
    try:
        instant = calendar.timegm(fields + (0, 0, 0))
    except (ValueError, OverflowError) as e:
        raise TimestampParseError(f"Invalid timestamp {text!r}: {e}") from e

    # GPX times may carry their own zone designator
    if len(match.groups()) > 6 and match.group(7) not in (None, "Z"):
        designator = match.group(7).replace(":", "")
        instant -= TimeZoneOffset.parse(f"{designator[:3]}:{designator[3:]}").seconds

    if offset is not None:
        instant -= offset.seconds

    return instant


def resolve_auto_offset(exif_time: str, tz: Optional[tzinfo] = None) -> TimeZoneOffset:
    """
    Work out the local UTC offset in effect at a photo's timestamp.

    The naive photo time is read as if it were UTC, broken down again with
    gmtime and handed to mktime with DST unknown. The difference between the
    two instants is the offset. ``tz`` replaces the host zone when given.

    Args:
        exif_time: Photo time as ``YYYY:MM:DD HH:MM:SS``
        tz: Optional zone to use instead of the process local zone

    Returns:
        Offset in whole hours plus leftover minutes
    """
    photo_time = parse_timestamp(exif_time, EXIF_DATE_FORMAT)

    if tz is None:
        broken_down = time.gmtime(photo_time)
        real_time = int(time.mktime(tuple(broken_down)[:8] + (-1,)))
    else:
        wall = datetime.fromtimestamp(photo_time, timezone.utc).replace(tzinfo=tz)
        real_time = int(wall.timestamp())

    diff = photo_time - real_time
    return TimeZoneOffset(int(diff / 3600), int(math.fmod(diff, 3600) / 60))


def adjust_photo_time(
    exif_time: str,
    offset: TimeZoneOffset,
    photo_offset_seconds: int = 0
) -> int:
    """
    Convert a photo's local timestamp to the UTC instant used for matching.

    Args:
        exif_time: Photo time as ``YYYY:MM:DD HH:MM:SS``
        offset: Photo time zone
        photo_offset_seconds: Camera clock correction (GPS - photo)

    Returns:
        UTC epoch seconds
    """
    return parse_timestamp(exif_time, EXIF_DATE_FORMAT, offset) + photo_offset_seconds


def format_timestamp(instant: int) -> str:
    """Format epoch seconds as a UTC ``YYYY:MM:DD HH:MM:SS`` string."""
    return time.strftime("%Y:%m:%d %H:%M:%S", time.gmtime(instant))
