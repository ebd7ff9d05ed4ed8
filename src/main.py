from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from config import AppConfig
from data_store import RepairLog
from engine import repair_batch, scan
from errors import ConfigError
from exif_reader import capture_epoch, read_embedded
from logging_setup import init_logging
from scanner import summarize
from types_ import ProgressEvent


def _print_progress(event: ProgressEvent):
    print(f"[{event.current}/{event.total}] {event.status} {event.filename}")


def _check_file(path: Path) -> int:
    m = read_embedded(path)
    print(f"File:         {m.path}")
    print(f"Capture date: {m.capture_date or '-'} (epoch {capture_epoch(m)})")
    if m.lat is None or m.lon is None:
        print("GPS:          -")
    else:
        print(f"GPS:          ({m.lat:.6f}, {m.lon:.6f}) alt={m.altitude}")
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="takeout-restore",
        description="Restore capture dates and GPS from Google Takeout JSON sidecars",
    )
    parser.add_argument("--input", type=str, help="Takeout folder to scan")
    parser.add_argument(
        "--out", type=str, default="./restored", help="Folder for repaired copies"
    )
    parser.add_argument(
        "--copy-solo",
        action="store_true",
        help="Copy media without a sidecar verbatim instead of skipping it",
    )
    parser.add_argument(
        "--dedupe",
        action="store_true",
        help="Write 'name (1).ext' instead of overwriting when basenames collide",
    )
    parser.add_argument("--ffmpeg", type=str, default="ffmpeg", help="ffmpeg binary")
    parser.add_argument(
        "--report-dir", type=str, default=None, help="Write CSV/JSON reports here"
    )
    parser.add_argument("--log-dir", type=str, default=None, help="Rotating log folder")
    parser.add_argument(
        "--no-recurse", dest="recurse", action="store_false", help="Top folder only"
    )
    parser.add_argument(
        "--scan-only", action="store_true", help="Only report what would be repaired"
    )
    parser.add_argument(
        "--check", type=str, default=None, help="Print embedded metadata of one file"
    )
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    return parser


def main(argv=None):
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    init_logging(args.log_dir, verbose=args.verbose)

    if args.check:
        return _check_file(Path(args.check))
    if not args.input:
        parser.print_usage(sys.stderr)
        print("--input is required", file=sys.stderr)
        return 2

    cfg = AppConfig(
        ffmpeg_bin=args.ffmpeg,
        copy_solo=args.copy_solo,
        dedupe_on_collision=args.dedupe,
        recurse=args.recurse,
        report_dir=Path(args.report_dir) if args.report_dir else None,
    )

    try:
        records = scan(Path(args.input), config=cfg)
        counts = summarize(records)
        print(
            f"Found: {counts['total']} media ({counts['photos']} photos, "
            f"{counts['videos']} videos), {counts['ready']} with sidecar, "
            f"{counts['missing_sidecar']} without"
        )
        if args.scan_only:
            return 0

        report = repair_batch(
            records, Path(args.out), cfg.copy_solo, _print_progress, config=cfg
        )
    except ConfigError as e:
        logger.error("{}", e)
        return 2

    print(
        f"Fixed photos: {report.fixed_photos}, Fixed videos: {report.fixed_videos}, "
        f"GPS restored: {report.gps_restored}"
    )
    print(
        f"Solo copied: {report.solo_copied}, Skipped: {report.skipped}, "
        f"Failed: {report.failed}"
    )
    if cfg.report_dir:
        RepairLog(report).write_reports(cfg.report_dir)
        print(f"Reports written to {cfg.report_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
