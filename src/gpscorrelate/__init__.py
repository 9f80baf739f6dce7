"""
gpscorrelate - match photos to GPS tracks by timestamp.
Correlates photo capture times with GPX track points and writes the
resulting positions into the photos' EXIF GPS tags.
"""

__version__ = "1.6.1"
__author__ = "gpscorrelate contributors"

from .core.config import Config, CorrelationConfig
from .core.correlator import CorrelationOutcome, CorrelationResult, Correlator, correlate
from .core.gps_track import GPSPoint, GPSTrack

__all__ = [
    "Config",
    "CorrelationConfig",
    "CorrelationOutcome",
    "CorrelationResult",
    "Correlator",
    "GPSPoint",
    "GPSTrack",
    "correlate",
    "__version__",
]
