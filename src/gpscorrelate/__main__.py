"""
Command-line interface for gpscorrelate.
Matches photos to GPX tracks and manages the GPS tags in photo EXIF data.
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from gpscorrelate import __version__
from gpscorrelate.core.config import Config, create_default_config
from gpscorrelate.exceptions import GPSCorrelateError
from gpscorrelate.processors.gpx_reader import read_gpx_files
from gpscorrelate.processors.photo_tagger import (
    LEGEND,
    PhotoTagger,
    fix_datestamps,
    remove_tags,
    show_photos,
)
from gpscorrelate.utils.logger import setup_logger
from gpscorrelate.utils.time_utils import TimeZoneOffset, format_timestamp


def load_config(args) -> Config:
    """Load the YAML config if one was given, then apply command line overrides."""
    config_path = getattr(args, "config", None)
    if config_path:
        if not Path(config_path).exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        config = Config.from_yaml(config_path)
    else:
        config = Config()

    correlation = {}
    if getattr(args, "timeadd", None):
        correlation["timezone"] = str(TimeZoneOffset.parse(args.timeadd))
    if getattr(args, "photooffset", None) is not None:
        correlation["photo_offset_seconds"] = args.photooffset
    if getattr(args, "no_interpolation", False):
        correlation["interpolate"] = False
    if getattr(args, "max_dist", None) is not None:
        correlation["max_gap_seconds"] = args.max_dist
    if getattr(args, "ignore_tracksegs", False):
        correlation["between_segments"] = True
    if correlation:
        config.correlation = replace(config.correlation, **correlation)

    if getattr(args, "datum", None):
        config.output.datum = args.datum
    if getattr(args, "no_write", False):
        config.output.write_exif = False
    if getattr(args, "no_mtime", False):
        config.output.keep_mtime = True
    if getattr(args, "degmins", False):
        config.output.degrees_minutes_seconds = False
    if getattr(args, "workers", None):
        config.workers = args.workers

    if getattr(args, "verbose", False):
        config.log_level = "INFO"
    if getattr(args, "log_level", None):
        config.log_level = args.log_level

    config.validate()
    setup_logger("gpscorrelate", level=config.log_level, log_file=config.log_file)
    return config


def cmd_correlate(args):
    """Correlate photos with GPX data and write the positions."""
    try:
        config = load_config(args)

        print("Reading GPS Data...")
        track = read_gpx_files(args.gps)
        if track.min_time is None:
            print("❌ Cannot continue since no GPS data is available.")
            return 1

        tagger = PhotoTagger(config, track)

        if not args.verbose:
            print(LEGEND)

        report = tagger.process(args.photos, show_progress=args.progress)

        if args.verbose:
            for result in report.results:
                print(result.describe())
        else:
            print(f"Correlate: {report.legend_line()}")

        print()
        for line in report.summary_lines():
            print(line)

        return 0

    except (GPSCorrelateError, ValueError, OSError) as e:
        print(f"❌ Error: {e}")
        return 1


def cmd_show(args):
    """Display the GPS data stored in photos."""
    for line in show_photos(args.photos, machine_readable=args.machine):
        print(line)
    return 0


def cmd_remove(args):
    """Strip GPS tags from photos."""
    setup_logger("gpscorrelate", level="WARNING")
    for line in remove_tags(args.photos, keep_mtime=args.no_mtime):
        print(line)
    return 0


def cmd_fix_datestamps(args):
    """Fix GPS date stamps that do not match the photo time."""
    try:
        offset = TimeZoneOffset.parse(args.timeadd)
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    setup_logger("gpscorrelate", level="WARNING")
    for line in fix_datestamps(args.photos, offset, write=not args.no_write):
        print(line)
    return 0


def cmd_info(args):
    """Display GPX track information."""
    try:
        track = read_gpx_files(args.gps)
    except GPSCorrelateError as e:
        print(f"❌ Error reading GPS data: {e}")
        return 1

    stats = track.get_statistics()
    if not stats:
        print("No track points found.")
        return 1

    print(f"📍 Track Information: {', '.join(args.gps)}")
    print("=" * 60)
    print(f"Points:   {stats['num_points']}")
    print(f"Segments: {stats['num_segments']}")
    print(f"Start:    {format_timestamp(stats['start_time'])} UTC")
    print(f"End:      {format_timestamp(stats['end_time'])} UTC")
    print(f"Duration: {stats['duration_s']} seconds")
    print(f"Distance: {stats['total_distance_m'] / 1000.0:.2f} km")
    return 0


def cmd_init(args):
    """Initialize a new configuration file."""
    output_path = Path(args.output)

    if output_path.exists() and not args.force:
        print(f"❌ Configuration file already exists: {output_path}")
        print("💡 Use --force to overwrite")
        return 1

    try:
        create_default_config(str(output_path))
    except OSError as e:
        print(f"❌ Error creating configuration: {e}")
        return 1

    print(f"✅ Configuration file created: {output_path}")
    print(f"💡 Run: gpscorrelate correlate --config {output_path} -g track.gpx photos/*.jpg")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpscorrelate",
        description="Match photo timestamps to GPS tracks and write positions to EXIF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Correlate photos taken in UTC+10 with a track
  gpscorrelate correlate -g walk.gpx -z +10 photos/*.jpg

  # Dry run, showing every result
  gpscorrelate correlate -g walk.gpx -n -v photos/*.jpg

  # Show existing GPS tags as CSV
  gpscorrelate show --machine photos/*.jpg
        """
    )
    parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Correlate command
    parser_corr = subparsers.add_parser("correlate", help="Correlate photos with GPS data")
    parser_corr.add_argument("photos", nargs="+", help="Photo files to correlate")
    parser_corr.add_argument(
        "--gps", "-g", action="append", required=True,
        help="GPX file with GPS data (repeat for several files)"
    )
    parser_corr.add_argument(
        "--timeadd", "-z",
        help="Photo time zone as +/-HH[:MM], at most 14 hours (default: local zone of "
             "first photo). Fix larger camera clock errors with --photooffset"
    )
    parser_corr.add_argument(
        "--photooffset", "-O", type=int,
        help="Seconds added to photo time to match the GPS (GPS - photo)"
    )
    parser_corr.add_argument(
        "--no-interpolation", "-i", action="store_true",
        help="Round to the nearest point instead of interpolating"
    )
    parser_corr.add_argument(
        "--max-dist", "-m", type=int,
        help="Max seconds from the nearest point that a photo will be matched"
    )
    parser_corr.add_argument(
        "--ignore-tracksegs", "-t", action="store_true",
        help="Interpolate between track segments, too"
    )
    parser_corr.add_argument("--datum", "-d", help="Measurement datum (default: WGS-84)")
    parser_corr.add_argument("--no-write", "-n", action="store_true", help="Do not write EXIF data")
    parser_corr.add_argument("--no-mtime", "-M", action="store_true", help="Keep mtime of modified files")
    parser_corr.add_argument(
        "--degmins", "-p", action="store_true",
        help="Write location as DD MM.MM instead of DD MM SS.SS"
    )
    parser_corr.add_argument("--workers", "-w", type=int, help="Photos processed in parallel")
    parser_corr.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser_corr.add_argument("--verbose", "-v", action="store_true", help="Show each photo's result")
    parser_corr.add_argument("--config", "-c", help="YAML configuration file")
    parser_corr.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level from config"
    )
    parser_corr.set_defaults(func=cmd_correlate)

    # Show command
    parser_show = subparsers.add_parser("show", help="Show GPS data stored in photos")
    parser_show.add_argument("photos", nargs="+", help="Photo files")
    parser_show.add_argument("--machine", "-o", action="store_true", help="CSV output")
    parser_show.set_defaults(func=cmd_show)

    # Remove command
    parser_remove = subparsers.add_parser("remove", help="Strip GPS tags from photos")
    parser_remove.add_argument("photos", nargs="+", help="Photo files")
    parser_remove.add_argument("--no-mtime", "-M", action="store_true", help="Keep mtime of modified files")
    parser_remove.set_defaults(func=cmd_remove)

    # Fix datestamps command
    parser_fix = subparsers.add_parser(
        "fix-datestamps", help="Fix GPS date stamps that disagree with photo time"
    )
    parser_fix.add_argument("photos", nargs="+", help="Photo files")
    parser_fix.add_argument(
        "--timeadd", "-z", required=True, help="Photo time zone as +/-HH[:MM], at most 14 hours"
    )
    parser_fix.add_argument("--no-write", "-n", action="store_true", help="Only report wrong stamps")
    parser_fix.set_defaults(func=cmd_fix_datestamps)

    # Info command
    parser_info = subparsers.add_parser("info", help="Display GPX track information")
    parser_info.add_argument("gps", nargs="+", help="GPX files")
    parser_info.set_defaults(func=cmd_info)

    # Init command
    parser_init = subparsers.add_parser("init", help="Create default configuration file")
    parser_init.add_argument(
        "--output", "-o",
        default="gpscorrelate.yaml",
        help="Output configuration file path (default: gpscorrelate.yaml)"
    )
    parser_init.add_argument("--force", "-f", action="store_true", help="Overwrite existing file")
    parser_init.set_defaults(func=cmd_init)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
