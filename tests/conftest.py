"""Shared fixtures: synthetic tracks, GPX files and JPEG photos."""

import logging

import pytest
from PIL import ExifTags, Image

from gpscorrelate.core.gps_track import GPSPoint, GPSTrack
from gpscorrelate.processors import exif_io


GPX_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="tests" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>test</name>
{segments}
  </trk>
</gpx>
"""


@pytest.fixture
def point():
    """Factory for track points with sensible precision defaults."""
    def make(time, lat=0.0, lon=0.0, ele=None, lat_dec=6, lon_dec=6, ele_dec=1, eos=False):
        if ele is None:
            return GPSPoint(time, lat, lon, 0.0, lat_dec, lon_dec, -1, end_of_segment=eos)
        return GPSPoint(time, lat, lon, ele, lat_dec, lon_dec, ele_dec, end_of_segment=eos)
    return make


@pytest.fixture
def track():
    """Factory turning points into a finalized GPSTrack."""
    def make(*points):
        return GPSTrack(points)
    return make


@pytest.fixture
def gpx_file(tmp_path):
    """
    Factory writing a GPX file.

    Each segment is a list of (lat, lon, time, ele) string tuples; ele and
    time may be None to leave the element out.
    """
    counter = {"n": 0}

    def make(*segments, name=None):
        blocks = []
        for segment in segments:
            lines = ["    <trkseg>"]
            for lat, lon, time, ele in segment:
                lines.append(f'      <trkpt lat="{lat}" lon="{lon}">')
                if ele is not None:
                    lines.append(f"        <ele>{ele}</ele>")
                if time is not None:
                    lines.append(f"        <time>{time}</time>")
                lines.append("      </trkpt>")
            lines.append("    </trkseg>")
            blocks.append("\n".join(lines))

        counter["n"] += 1
        path = tmp_path / (name or f"track{counter['n']}.gpx")
        path.write_text(GPX_TEMPLATE.format(segments="\n".join(blocks)), encoding="utf-8")
        return str(path)

    return make


@pytest.fixture
def jpeg(tmp_path):
    """Factory writing a small JPEG with optional DateTimeOriginal and GPS position."""
    def make(name, original_time=None, gps=None):
        path = tmp_path / name
        exif = Image.Exif()
        if original_time is not None:
            exif[ExifTags.IFD.Exif] = {ExifTags.Base.DateTimeOriginal: original_time}

        image = Image.new("RGB", (16, 16), "white")
        if len(exif):
            image.save(path, format="JPEG", exif=exif)
        else:
            image.save(path, format="JPEG")

        if gps is not None:
            assert exif_io.write_gps_data(str(path), gps)
        return str(path)

    return make


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers a CLI run attached so later tests log through pytest again."""
    yield
    logger = logging.getLogger("gpscorrelate")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
