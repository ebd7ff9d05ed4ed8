from __future__ import annotations

import os
from typing import Union

from config import MEDIA_EXTS, PHOTO_EXTS, VIDEO_EXTS

PathLike = Union[str, "os.PathLike[str]"]


def _ext(path: PathLike) -> str:
    return os.path.splitext(os.fspath(path))[1].lower()


def is_media(path: PathLike) -> bool:
    """Supported photo or video, judged by extension only."""
    return _ext(path) in MEDIA_EXTS


def is_video(path: PathLike) -> bool:
    return _ext(path) in VIDEO_EXTS


def is_photo(path: PathLike) -> bool:
    return _ext(path) in PHOTO_EXTS
