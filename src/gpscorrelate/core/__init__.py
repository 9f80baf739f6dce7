"""Core modules for gpscorrelate."""

from .config import Config, CorrelationConfig, OutputConfig
from .gps_track import GPSPoint, GPSTrack
from .correlator import CorrelationOutcome, CorrelationResult, Correlator, correlate

__all__ = [
    "Config",
    "CorrelationConfig",
    "OutputConfig",
    "GPSPoint",
    "GPSTrack",
    "CorrelationOutcome",
    "CorrelationResult",
    "Correlator",
    "correlate",
]
