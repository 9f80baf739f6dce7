"""
Exception hierarchy for gpscorrelate.

Expected correlation conditions (no match, too far, ...) are reported as
outcomes, not exceptions. These classes cover the I/O collaborators and
malformed input around the correlator.
"""


class GPSCorrelateError(Exception):
    """Base exception for the package."""


class TrackReadError(GPSCorrelateError):
    """Raised when a GPS track file cannot be read or is not valid GPX."""


class TimestampParseError(GPSCorrelateError, ValueError):
    """Raised when a timestamp string does not match the expected format."""


class MetadataError(GPSCorrelateError):
    """Raised when photo metadata cannot be opened or decoded."""
