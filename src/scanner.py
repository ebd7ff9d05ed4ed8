from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterator, List

from loguru import logger

from classifier import is_media, is_photo, is_video
from errors import ConfigError
from sidecar import find_sidecar
from types_ import MediaRecord, ScanStatus


def iter_media_files(root: Path, recurse: bool = True) -> Iterator[Path]:
    """
    Yield supported media under `root` in traversal order.
    Symlinks are never followed (no cycles) and never yielded.
    """
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        if not recurse:
            dirnames.clear()
        for name in filenames:
            p = Path(dirpath) / name
            if p.is_symlink() or not p.is_file():
                continue
            if is_media(p):
                yield p


def analyze(root: Path, recurse: bool = True) -> List[MediaRecord]:
    root = Path(root)
    if not root.exists():
        raise ConfigError(f"Input folder does not exist: {root}")
    if not root.is_dir():
        raise ConfigError(f"Input path is not a directory: {root}")

    records: List[MediaRecord] = []
    for p in iter_media_files(root, recurse=recurse):
        sidecar = find_sidecar(p)
        status = ScanStatus.READY if sidecar else ScanStatus.MISSING_SIDECAR
        records.append(MediaRecord(media_path=p, sidecar_path=sidecar, status=status))
        logger.debug("scan: {} [{}]", p, status.value)

    logger.info("Scanned {}: {} media files", root, len(records))
    return records


def summarize(records: List[MediaRecord]) -> Dict[str, int]:
    ready = sum(1 for r in records if r.status is ScanStatus.READY)
    photos = sum(1 for r in records if is_photo(r.media_path))
    videos = sum(1 for r in records if is_video(r.media_path))
    return {
        "total": len(records),
        "ready": ready,
        "missing_sidecar": len(records) - ready,
        "photos": photos,
        "videos": videos,
    }
