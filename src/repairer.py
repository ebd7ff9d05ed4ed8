from __future__ import annotations

import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger

from classifier import is_video
from config import EXIF_DATETIME_FMT, ISO_DATETIME_FMT
from errors import MetadataParseError
from exif_writer import MetadataWriter
from types_ import MediaRecord, RepairOutcome, SidecarMetadata
from video_tool import VideoMetadataRewriter


def _utc(epoch: int) -> datetime:
    try:
        return datetime.fromtimestamp(int(epoch), tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise MetadataParseError(f"Timestamp out of range: {epoch}") from e


def format_exif_datetime(epoch: int) -> str:
    return _utc(epoch).strftime(EXIF_DATETIME_FMT)


def format_iso_datetime(epoch: int) -> str:
    return _utc(epoch).strftime(ISO_DATETIME_FMT)


def destination_for(media_path: Path, destination_folder: Path) -> Path:
    return Path(destination_folder) / Path(media_path).name


class Repairer:
    """One media kind's way of producing a repaired copy at `destination`."""

    kind = ""

    def repair(
        self, record: MediaRecord, metadata: SidecarMetadata, destination: Path
    ) -> RepairOutcome:
        raise NotImplementedError


class PhotoRepairer(Repairer):
    kind = "photo"

    def __init__(self, writer: MetadataWriter):
        self.writer = writer

    def repair(
        self, record: MediaRecord, metadata: SidecarMetadata, destination: Path
    ) -> RepairOutcome:
        capture_date = format_exif_datetime(metadata.taken_at)
        # Copy bytes verbatim first; the writer only edits the EXIF block
        shutil.copyfile(record.media_path, destination)
        self.writer.write(destination, capture_date, metadata.geo)
        return RepairOutcome(
            gps_restored=metadata.geo.has_location, destination=destination
        )


class VideoRepairer(Repairer):
    kind = "video"

    def __init__(self, rewriter: VideoMetadataRewriter):
        self.rewriter = rewriter

    def repair(
        self, record: MediaRecord, metadata: SidecarMetadata, destination: Path
    ) -> RepairOutcome:
        creation_time = format_iso_datetime(metadata.taken_at)
        self.rewriter.rewrite(record.media_path, destination, creation_time)
        # Location is never written into video containers
        return RepairOutcome(gps_restored=False, destination=destination)


def repairer_for(
    media_path: Path, writer: MetadataWriter, rewriter: VideoMetadataRewriter
) -> Repairer:
    if is_video(media_path):
        return VideoRepairer(rewriter)
    return PhotoRepairer(writer)


def repair(
    record: MediaRecord,
    metadata: SidecarMetadata,
    destination_folder: Path,
    *,
    writer: MetadataWriter,
    rewriter: VideoMetadataRewriter,
    destination: Optional[Path] = None,
) -> RepairOutcome:
    dst = destination or destination_for(record.media_path, destination_folder)
    repairer = repairer_for(record.media_path, writer, rewriter)
    logger.debug("repair[{}]: {} -> {}", repairer.kind, record.media_path, dst)
    return repairer.repair(record, metadata, dst)


def copy_solo(
    record: MediaRecord, destination_folder: Path, destination: Optional[Path] = None
) -> RepairOutcome:
    """Copy a sidecar-less file as-is; nothing is restored."""
    dst = destination or destination_for(record.media_path, destination_folder)
    shutil.copyfile(record.media_path, dst)
    return RepairOutcome(gps_restored=False, destination=dst)
