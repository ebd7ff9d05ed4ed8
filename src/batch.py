from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Sequence, Set

from loguru import logger

from config import PROGRESS_STATUS
from errors import ConfigError
from exif_writer import MetadataWriter
from repairer import copy_solo as copy_solo_file
from repairer import destination_for, repair
from sidecar import load_sidecar
from types_ import BatchReport, MediaRecord, ProgressEvent, RecordResult
from verifier import verify
from video_tool import VideoMetadataRewriter

ProgressSink = Callable[[ProgressEvent], None]


def _check_destination(destination_folder: Path) -> Path:
    if destination_folder is None or str(destination_folder).strip() == "":
        raise ConfigError("Destination folder is required")
    dest = Path(destination_folder)
    if dest.exists() and not dest.is_dir():
        raise ConfigError(f"Destination is not a directory: {dest}")
    dest.mkdir(parents=True, exist_ok=True)
    return dest


class BatchOrchestrator:
    """
    Drives scan records through sidecar parse -> repair -> verify, one at a time.
    A failing record is counted and recorded; the batch always runs to the end.
    """

    def __init__(
        self,
        writer: MetadataWriter,
        rewriter: VideoMetadataRewriter,
        *,
        dedupe_on_collision: bool = False,
    ):
        self.writer = writer
        self.rewriter = rewriter
        self.dedupe_on_collision = dedupe_on_collision
        self._used_names: Set[str] = set()

    def _destination(self, record: MediaRecord, dest_dir: Path) -> Path:
        dst = destination_for(record.media_path, dest_dir)
        if self.dedupe_on_collision and dst.name in self._used_names:
            i = 1
            while True:
                cand = dest_dir / f"{dst.stem} ({i}){dst.suffix}"
                if cand.name not in self._used_names:
                    dst = cand
                    break
                i += 1
        self._used_names.add(dst.name)
        return dst

    @staticmethod
    def _emit(progress: Optional[ProgressSink], event: ProgressEvent) -> None:
        if progress is None:
            return
        try:
            progress(event)
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "Progress callback failed at {}/{}: {}", event.current, event.total, e
            )

    def _attempt(
        self, record: MediaRecord, dest_dir: Path, copy_solo: bool
    ) -> RecordResult:
        result = RecordResult(
            media_path=record.media_path, kind=record.kind, action="skipped"
        )
        if record.sidecar_path is None:
            if not copy_solo:
                return result
            outcome = copy_solo_file(
                record, dest_dir, destination=self._destination(record, dest_dir)
            )
            verify(outcome.destination)
            result.action = "solo_copied"
            result.destination = outcome.destination
            return result

        metadata = load_sidecar(record.sidecar_path)
        outcome = repair(
            record,
            metadata,
            dest_dir,
            writer=self.writer,
            rewriter=self.rewriter,
            destination=self._destination(record, dest_dir),
        )
        verify(outcome.destination)
        result.action = "fixed"
        result.destination = outcome.destination
        result.gps_restored = outcome.gps_restored
        return result

    def run(
        self,
        records: Sequence[MediaRecord],
        destination_folder: Path,
        copy_solo: bool,
        progress: Optional[ProgressSink] = None,
    ) -> BatchReport:
        dest_dir = _check_destination(destination_folder)
        self._used_names = set()
        report = BatchReport()
        total = len(records)

        for index, record in enumerate(records, start=1):
            self._emit(
                progress,
                ProgressEvent(
                    current=index,
                    total=total,
                    filename=record.media_path.name,
                    status=PROGRESS_STATUS,
                ),
            )
            try:
                result = self._attempt(record, dest_dir, copy_solo)
            except Exception as e:  # noqa: BLE001
                logger.warning("Failed {}: {}", record.media_path, e)
                result = RecordResult(
                    media_path=record.media_path,
                    kind=record.kind,
                    action="failed",
                    reason=f"{type(e).__name__}: {e}",
                )

            if result.action == "fixed":
                if record.is_video:
                    report.fixed_videos += 1
                else:
                    report.fixed_photos += 1
                if result.gps_restored:
                    report.gps_restored += 1
            elif result.action == "solo_copied":
                report.solo_copied += 1
            elif result.action == "skipped":
                report.skipped += 1
            else:
                report.failed += 1
            report.results.append(result)

        logger.info(
            "Batch done: {} photos, {} videos, {} gps, {} solo, {} skipped, {} failed",
            report.fixed_photos,
            report.fixed_videos,
            report.gps_restored,
            report.solo_copied,
            report.skipped,
            report.failed,
        )
        return report


def repair_batch(
    records: Sequence[MediaRecord],
    destination_folder: Path,
    copy_solo: bool,
    progress: Optional[ProgressSink] = None,
    *,
    writer: MetadataWriter,
    rewriter: VideoMetadataRewriter,
    dedupe_on_collision: bool = False,
) -> BatchReport:
    orchestrator = BatchOrchestrator(
        writer, rewriter, dedupe_on_collision=dedupe_on_collision
    )
    return orchestrator.run(records, destination_folder, copy_solo, progress)
