#!/usr/bin/env python3
"""
coderec_replay/cli.py - Command-Line Interface

Usage:
    coderec replay code-recorder-2024_05_03-10.11.12.123.csv
    coderec replay LOG.csv --formats SRT --duration-ms 65000 --output-dir out/
    coderec list ./code-recorder/

Exit Codes:
    0 = CLEAN
    1 = DEGRADED (replay warnings)
    2 = FAIL
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from coderec_sdk.config import RecorderSettings, resolve_export_path
from coderec_sdk.errors import RecorderException
from coderec_sdk.recorder import format_display_time
from coderec_sdk.write_queue import WriteQueue

from .engine import OFFSET_ENCODINGS, export_replay
from .export import EXPORT_FORMATS
from .recordings import list_recordings

logger = logging.getLogger(__name__)


def main(argv=None):
    """
    Parse command-line arguments and dispatch the coderec command-line interface.

    Subcommands:
    - replay: re-derive SRT/JSON exports from an existing row log
    - list: show the recordings of an export directory
    """
    settings = RecorderSettings()

    parser = argparse.ArgumentParser(
        prog="coderec",
        description="Replay and export recorded editing sessions"
    )
    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        help="Logging level (default: %(default)s)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # replay command
    replay_parser = subparsers.add_parser("replay", help="Replay a row log and write exports")
    replay_parser.add_argument("log_file", help="Path to the session .csv row log")
    replay_parser.add_argument(
        "--formats",
        nargs="*",
        type=str.upper,
        choices=EXPORT_FORMATS,
        default=list(settings.EXPORT_FORMATS),
        help="Export formats to write"
    )
    replay_parser.add_argument(
        "--duration-ms",
        type=int,
        default=None,
        help="Session duration used to close the last change (default: last row time)"
    )
    replay_parser.add_argument(
        "--output-dir", "-o",
        help="Directory for the exports (default: next to the log)"
    )
    replay_parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=settings.STRICT_REPLAY,
        help="Fail on out-of-range edits instead of clamping (default: %(default)s)"
    )
    replay_parser.add_argument(
        "--offset-encoding",
        choices=OFFSET_ENCODINGS,
        default=settings.OFFSET_ENCODING,
        help="Unit of recorded range offsets"
    )
    replay_parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace existing export files"
    )
    replay_parser.add_argument(
        "--report",
        help="Path to write a JSON replay report"
    )
    replay_parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only output exit code"
    )

    # list command
    list_parser = subparsers.add_parser("list", help="List recordings in an export directory")
    list_parser.add_argument("directory", nargs="?", help="Export directory (default: configured export path)")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "replay":
        run_replay(args)
    elif args.command == "list":
        run_list(args, settings)


def run_replay(args):
    """
    Run the replay subcommand and exit with the result's exit code.

    Exits with code 2 if the log file is missing or the replay aborts.
    """
    log_path = Path(args.log_file)

    if not log_path.is_file():
        print(f"Error: File not found: {log_path}", file=sys.stderr)
        sys.exit(2)

    output_dir = Path(args.output_dir) if args.output_dir else log_path.parent
    output_dir.mkdir(parents=True, exist_ok=True)
    queue = WriteQueue(output_dir, log_path.stem)

    try:
        result = export_replay(
            log_path,
            args.duration_ms,
            args.formats,
            queue,
            strict=args.strict,
            offset_encoding=args.offset_encoding,
            overwrite=args.overwrite,
        )
    except RecorderException as e:
        print(f"Error: Replay failed: {e}", file=sys.stderr)
        sys.exit(2)

    if args.report:
        with open(args.report, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2)
        if not args.quiet:
            print(f"Report written to: {args.report}")

    if not args.quiet:
        print(f"\n{'='*60}")
        print(f"REPLAY RESULT: {result.status.value}")
        print(f"{'='*60}")
        print(f"Session:          {result.session_id}")
        print(f"Duration:         {format_display_time(result.duration_ms // 1000)}")
        print(f"Rows:             {result.row_count}")
        print(f"Changes:          {result.change_count}")
        print(f"Skipped Lines:    {result.skipped_rows}")
        if result.outputs:
            print("\nOutputs:")
            for path in result.outputs:
                print(f"  {path}")
        else:
            print("\nNo export formats specified")

        if result.warnings:
            print(f"\nWarnings ({len(result.warnings)}):")
            for w in result.warnings:
                print(f"  [{w.severity.value}] {w.code.value}: {w.message}")

        print(f"\nExit Code: {result.exit_code}")

    sys.exit(result.exit_code)


def run_list(args, settings):
    if args.directory:
        directory = Path(args.directory)
    else:
        try:
            directory = resolve_export_path(settings)
        except RecorderException as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)

    recordings = list_recordings(directory)
    if not recordings:
        print(f"No recordings in {directory}")
        return

    for recording in recordings:
        exported = ", ".join(kind.value for kind in recording.exported) or "-"
        started = recording.started_at.strftime("%Y-%m-%d %H:%M:%S")
        print(f"{started}  {recording.identifier}  exports: {exported}")


if __name__ == "__main__":
    main()
