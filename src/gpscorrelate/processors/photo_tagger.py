"""
Batch photo geotagging pipeline.
Reads each photo's timestamp, correlates it against the track and writes the
resulting position back, collecting per-outcome counts for the final report.
"""

from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from tqdm import tqdm

from ..core.config import Config
from ..core.correlator import CorrelationOutcome, Correlator
from ..core.gps_track import GPSPoint, GPSTrack
from ..exceptions import MetadataError, TimestampParseError
from ..utils.logger import get_logger
from ..utils.time_utils import (
    TimeZoneOffset,
    adjust_photo_time,
    format_timestamp,
    parse_timestamp,
    resolve_auto_offset,
)
from . import exif_io


@dataclass(frozen=True)
class PhotoResult:
    """Outcome for one photo file."""
    path: str
    outcome: CorrelationOutcome
    point: Optional[GPSPoint] = None

    def describe(self) -> str:
        """Human readable one-line result."""
        messages = {
            CorrelationOutcome.EXACT_MATCH: "Exact match",
            CorrelationOutcome.INTERPOLATED: "Interpolated",
            CorrelationOutcome.ROUNDED: "Rounded",
            CorrelationOutcome.WRITE_FAILURE: "Exif write failure",
            CorrelationOutcome.NO_MATCH: "No match",
            CorrelationOutcome.TOO_FAR: "Too far from nearest point",
            CorrelationOutcome.NO_INPUT_TIMESTAMP: "No date exif tag present",
            CorrelationOutcome.GPS_ALREADY_PRESENT: "GPS Data already present",
        }
        text = f"{self.path}: {messages[self.outcome]}"
        if self.point is not None:
            text += (
                f": Lat {self.point.latitude:f}, Long {self.point.longitude:f}, "
                f"Elev {self.point.elevation:f}."
            )
        else:
            text += "."
        return text


@dataclass
class CorrelationReport:
    """Results of a batch, in input order."""
    results: List[PhotoResult] = field(default_factory=list)

    @property
    def counts(self) -> Counter:
        return Counter(result.outcome for result in self.results)

    @property
    def matched(self) -> int:
        return sum(1 for result in self.results if result.outcome.matched)

    @property
    def failed(self) -> int:
        return len(self.results) - self.matched

    def legend_line(self) -> str:
        """One character per photo, in processing order."""
        return "".join(result.outcome.symbol for result in self.results)

    def summary_lines(self) -> List[str]:
        counts = self.counts
        return [
            "Completed correlation process.",
            f"Matched: {self.matched:5d} ({counts[CorrelationOutcome.EXACT_MATCH]} Exact, "
            f"{counts[CorrelationOutcome.INTERPOLATED]} Interpolated, {counts[CorrelationOutcome.ROUNDED]} Rounded).",
            f"Failed:  {self.failed:5d} ({counts[CorrelationOutcome.NO_MATCH]} Not matched, "
            f"{counts[CorrelationOutcome.WRITE_FAILURE]} Write failure, {counts[CorrelationOutcome.TOO_FAR]} Too Far,",
            f"                {counts[CorrelationOutcome.NO_INPUT_TIMESTAMP]} No Date, "
            f"{counts[CorrelationOutcome.GPS_ALREADY_PRESENT]} GPS Already Present.)",
        ]


LEGEND = (
    "Legend: . = Ok, / = Interpolated, < = Rounded, - = No match, ^ = Too far.\n"
    "        w = Write Fail, ? = No EXIF date, ! = GPS already present."
)


class PhotoTagger:
    """
    Correlates photos against one track.

    Pipeline per photo:
    1. Read capture time (missing -> NO_INPUT_TIMESTAMP, GPS present -> GPS_ALREADY_PRESENT)
    2. Resolve the automatic time zone from the first photo seen
    3. Adjust to UTC and correlate
    4. Write the position unless writing is disabled
    """

    def __init__(self, config: Config, track: GPSTrack):
        """
        Initialize tagger.

        Args:
            config: Run configuration
            track: Finalized track shared by all photos
        """
        config.validate()
        self.config = config
        self.correlation = config.correlation
        self.track = track
        self.logger = get_logger(__name__)

    @property
    def timezone_resolved(self) -> bool:
        return not self.correlation.auto_timezone

    def _resolve_timezone(self, original_time: str) -> TimeZoneOffset:
        if self.correlation.auto_timezone:
            offset = resolve_auto_offset(original_time)
            self.correlation = self.correlation.with_timezone(offset)
            self.logger.info(f"Using time zone offset {offset} from first photo")
        return self.correlation.timezone_offset

    def correlate_photo(self, photo_path: str) -> PhotoResult:
        """
        Correlate a single photo and write its position.

        Args:
            photo_path: Photo file

        Returns:
            PhotoResult
        """
        try:
            stamp = exif_io.read_photo_time(photo_path)
        except MetadataError as e:
            self.logger.warning(str(e))
            return PhotoResult(photo_path, CorrelationOutcome.NO_INPUT_TIMESTAMP)

        if stamp.original_time is None:
            return PhotoResult(photo_path, CorrelationOutcome.NO_INPUT_TIMESTAMP)
        if stamp.includes_gps:
            return PhotoResult(photo_path, CorrelationOutcome.GPS_ALREADY_PRESENT)

        try:
            offset = self._resolve_timezone(stamp.original_time)
            photo_time = adjust_photo_time(
                stamp.original_time, offset, self.correlation.photo_offset_seconds
            )
        except TimestampParseError as e:
            self.logger.warning(f"{photo_path}: {e}")
            return PhotoResult(photo_path, CorrelationOutcome.NO_INPUT_TIMESTAMP)

        self.logger.debug(f"{photo_path}: photo time {format_timestamp(photo_time)} UTC")

        result = Correlator(self.correlation).correlate(photo_time, self.track)
        if result.point is None:
            return PhotoResult(photo_path, result.outcome)

        output = self.config.output
        if output.write_exif:
            written = exif_io.write_gps_data(
                photo_path,
                result.point,
                output.datum,
                output.degrees_minutes_seconds,
                output.keep_mtime,
            )
            if not written:
                return PhotoResult(photo_path, CorrelationOutcome.WRITE_FAILURE, result.point)

        return PhotoResult(photo_path, result.outcome, result.point)

    def process(self, photo_paths: Sequence[str], show_progress: bool = False) -> CorrelationReport:
        """
        Correlate a batch of photos.

        The first photo always runs alone so an automatic time zone is fixed
        before any parallel work starts.

        Args:
            photo_paths: Photo files, processed in this order
            show_progress: Display a tqdm progress bar

        Returns:
            CorrelationReport in input order
        """
        report = CorrelationReport()
        paths = [str(p) for p in photo_paths]
        progress = tqdm(total=len(paths), desc="Correlating", unit="photo", disable=not show_progress)

        with progress:
            index = 0
            while index < len(paths) and not self.timezone_resolved:
                report.results.append(self.correlate_photo(paths[index]))
                progress.update(1)
                index += 1

            remaining = paths[index:]
            if self.config.workers > 1 and len(remaining) > 1:
                with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
                    for result in executor.map(self.correlate_photo, remaining):
                        report.results.append(result)
                        progress.update(1)
            else:
                for path in remaining:
                    report.results.append(self.correlate_photo(path))
                    progress.update(1)

        self.logger.info(
            f"Correlated {len(paths)} photos: {report.matched} matched, {report.failed} failed"
        )
        return report


def show_photos(photo_paths: Iterable[str], machine_readable: bool = False) -> List[str]:
    """
    Describe the GPS data stored in photos.

    Machine readable output is CSV and omits photos without GPS data.

    Returns:
        Output lines
    """
    lines = []
    for path in photo_paths:
        try:
            data = exif_io.read_gps_data(path)
        except MetadataError:
            data = None

        if data is None or data.original_time is None:
            if not machine_readable:
                lines.append(f"{path}: No EXIF data.")
        elif data.includes_gps:
            if machine_readable:
                lines.append(
                    f'"{path}","{data.original_time}",'
                    f"{data.latitude:f},{data.longitude:f},{data.elevation:f}"
                )
            else:
                lines.append(
                    f"{path}: {data.original_time}, Lat {data.latitude:f}, "
                    f"Long {data.longitude:f}, Elevation {data.elevation:f}."
                )
        elif not machine_readable:
            lines.append(f"{path}: {data.original_time}, No GPS Data.")
    return lines


def remove_tags(photo_paths: Iterable[str], keep_mtime: bool = False) -> List[str]:
    """Strip GPS tags from photos. Returns one status line per photo."""
    lines = []
    for path in photo_paths:
        if exif_io.remove_gps_data(path, keep_mtime):
            lines.append(f"{path}: Removed GPS tags.")
        else:
            lines.append(f"{path}: Tag removal failure.")
    return lines


def fix_datestamps(
    photo_paths: Iterable[str],
    offset: TimeZoneOffset,
    write: bool = True
) -> List[str]:
    """
    Repair GPS date/time stamps that disagree with the photo capture time.

    Args:
        photo_paths: Photo files
        offset: Time zone of the photo capture times
        write: Rewrite wrong stamps (False only reports them)

    Returns:
        One status line per photo
    """
    lines = []
    for path in photo_paths:
        try:
            data = exif_io.read_gps_timestamp(path)
        except MetadataError:
            lines.append(f"{path}: No EXIF data.")
            continue

        if data.original_time is None:
            lines.append(f"{path}: No EXIF data.")
            continue
        if not data.includes_gps:
            lines.append(f"{path}: No GPS data.")
            continue

        try:
            photo_time = parse_timestamp(data.original_time, offset=offset)
            gps_time = parse_timestamp(data.gps_time)
        except TimestampParseError as e:
            lines.append(f"{path}: {e}")
            continue

        if photo_time == gps_time:
            lines.append(
                f"{path}: Timestamp is OK: Photo {data.original_time} (localtime), "
                f"GPS {data.gps_time} (UTC)."
            )
            continue

        if write and not exif_io.write_fixed_datestamp(path, photo_time):
            lines.append(f"{path}: Timestamp fix failed.")
            continue
        lines.append(
            f"{path}: Wrong timestamp: Photo {format_timestamp(photo_time)}, "
            f"GPS {format_timestamp(gps_time)}, Corrected: {format_timestamp(photo_time)}."
        )
    return lines
