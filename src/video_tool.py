from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List

from loguru import logger

from errors import ExternalProcessError


class VideoMetadataRewriter:
    """Interface for rewriting container creation_time while stream-copying."""

    def rewrite(self, src: Path, dst: Path, creation_time: str) -> None:
        raise NotImplementedError


class FfmpegRewriter(VideoMetadataRewriter):
    def __init__(self, bin: str = "ffmpeg"):
        self.bin = bin

    def build_command(self, src: Path, dst: Path, creation_time: str) -> List[str]:
        # -map 0 keeps every stream; -c copy never re-encodes; -y overwrites dst
        return [
            self.bin,
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            str(src),
            "-map",
            "0",
            "-metadata",
            f"creation_time={creation_time}",
            "-c",
            "copy",
            "-y",
            str(dst),
        ]

    def rewrite(self, src: Path, dst: Path, creation_time: str) -> None:
        cmd = self.build_command(src, dst, creation_time)
        logger.debug("ffmpeg: {}", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, check=False, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise ExternalProcessError(f"ffmpeg not found: {self.bin}") from e
        except OSError as e:
            raise ExternalProcessError(f"ffmpeg exec error: {e}") from e

        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip()
            raise ExternalProcessError(stderr or f"ffmpeg exited {proc.returncode}")
