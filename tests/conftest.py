from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional, Tuple

import pytest
from loguru import logger
from PIL import Image

from exif_writer import MetadataWriter
from types_ import GeoData
from video_tool import VideoMetadataRewriter

NEW_YEAR_2021 = 1609459200


def make_image(path: Path, fmt: str = "JPEG") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", (16, 12), (200, 30, 30)).save(path, format=fmt)
    return path


def write_sidecar(
    path: Path,
    timestamp="1609459200",
    lat=0.0,
    lon=0.0,
    alt=0.0,
) -> Path:
    data = {
        "title": path.name,
        "description": "",
        "photoTakenTime": {"timestamp": timestamp, "formatted": "Jan 1, 2021"},
        "geoData": {"latitude": lat, "longitude": lon, "altitude": alt},
    }
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class FakeWriter(MetadataWriter):
    def __init__(self, fail_on: Optional[str] = None):
        self.calls: List[Tuple[Path, str, Optional[GeoData]]] = []
        self.fail_on = fail_on

    def write(self, path, capture_date, geo):
        if self.fail_on and Path(path).name == self.fail_on:
            raise OSError("disk full")
        self.calls.append((Path(path), capture_date, geo))


class FakeRewriter(VideoMetadataRewriter):
    """Copies the input so the verifier sees a real file."""

    def __init__(self):
        self.calls: List[Tuple[Path, Path, str]] = []

    def rewrite(self, src, dst, creation_time):
        self.calls.append((Path(src), Path(dst), creation_time))
        Path(dst).write_bytes(Path(src).read_bytes())


@pytest.fixture(autouse=True)
def _drop_log_sinks():
    yield
    # main() adds sinks bound to the captured streams of that test
    logger.remove()


@pytest.fixture
def fake_writer():
    return FakeWriter()


@pytest.fixture
def fake_rewriter():
    return FakeRewriter()
