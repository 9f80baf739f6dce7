"""Utility modules for gpscorrelate."""

from .logger import setup_logger, get_logger
from .geo_utils import haversine_distance
from .time_utils import TimeZoneOffset, parse_timestamp

__all__ = ["setup_logger", "get_logger", "haversine_distance", "TimeZoneOffset", "parse_timestamp"]
