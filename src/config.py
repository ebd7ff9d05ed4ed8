from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Supported media, compared against the lowercased suffix.
PHOTO_EXTS = frozenset(
    {".jpg", ".jpeg", ".png", ".heic", ".webp", ".gif", ".tiff", ".bmp"}
)
VIDEO_EXTS = frozenset({".mp4", ".mov", ".m4v", ".mkv", ".avi", ".wmv"})
MEDIA_EXTS = PHOTO_EXTS | VIDEO_EXTS

# EXIF uses colons in the date part; ffmpeg wants ISO-8601 without offset.
EXIF_DATETIME_FMT = "%Y:%m:%d %H:%M:%S"
ISO_DATETIME_FMT = "%Y-%m-%dT%H:%M:%S"

PROGRESS_STATUS = "Processing..."


@dataclass(frozen=True)
class AppConfig:
    ffmpeg_bin: str = "ffmpeg"
    # Copy files without a sidecar verbatim instead of skipping them
    copy_solo: bool = False
    # Rename "name.jpg" -> "name (1).jpg" when two sources share a basename
    dedupe_on_collision: bool = False
    recurse: bool = True
    report_dir: Optional[Path] = None
