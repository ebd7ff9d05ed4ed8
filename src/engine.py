"""Entry points for a host (CLI or desktop shell): scan a folder, repair a batch."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from batch import ProgressSink
from batch import repair_batch as _repair_batch
from config import AppConfig
from exif_writer import PiexifMetadataWriter
from scanner import analyze
from types_ import BatchReport, MediaRecord
from video_tool import FfmpegRewriter


def scan(root: Path, config: Optional[AppConfig] = None) -> List[MediaRecord]:
    cfg = config or AppConfig()
    return analyze(Path(root), recurse=cfg.recurse)


def repair_batch(
    records: Sequence[MediaRecord],
    destination_folder: Path,
    copy_solo: bool,
    progress: Optional[ProgressSink] = None,
    *,
    config: Optional[AppConfig] = None,
) -> BatchReport:
    cfg = config or AppConfig()
    return _repair_batch(
        records,
        destination_folder,
        copy_solo,
        progress,
        writer=PiexifMetadataWriter(),
        rewriter=FfmpegRewriter(cfg.ffmpeg_bin),
        dedupe_on_collision=cfg.dedupe_on_collision,
    )
