"""Track reading, EXIF access and batch tagging for gpscorrelate."""

from .gpx_reader import GPXReader, read_gpx_files
from .photo_tagger import CorrelationReport, PhotoResult, PhotoTagger

__all__ = ["GPXReader", "read_gpx_files", "CorrelationReport", "PhotoResult", "PhotoTagger"]
