from __future__ import annotations

import json
import math
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from errors import MetadataParseError
from types_ import GeoData, SidecarMetadata

_EPOCH_RE = re.compile(r"-?\d+")


# ---------- Locating the sidecar ----------
def sidecar_candidates(media_path: Path) -> List[Path]:
    """
    Takeout names the sidecar either IMG_1234.JPG.json or IMG_1234.json.
    The full-name variant wins when both exist.
    """
    return [
        media_path.with_suffix(media_path.suffix + ".json"),
        media_path.with_suffix(".json"),
    ]


def find_sidecar(media_path: Path) -> Optional[Path]:
    # No case-insensitive retry and no handling of Takeout's truncated names.
    for c in sidecar_candidates(media_path):
        if c.exists():
            return c
    return None


# ---------- Parsing ----------
def _number(block: Dict[str, Any], key: str, where: str) -> float:
    v = block.get(key)
    # bool is an int subclass; a true/false coordinate is still garbage
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise MetadataParseError(f"{where}.{key} must be a number, got: {v!r}")
    try:
        f = float(v)
    except OverflowError:
        f = math.inf
    # json accepts NaN and Infinity
    if not math.isfinite(f):
        raise MetadataParseError(f"{where}.{key} must be finite, got: {v!r}")
    return f


def _geo(data: Dict[str, Any], key: str) -> GeoData:
    block = data.get(key)
    if not isinstance(block, dict):
        raise MetadataParseError(f"Missing or invalid '{key}' block")
    return GeoData(
        latitude=_number(block, "latitude", key),
        longitude=_number(block, "longitude", key),
        altitude=_number(block, "altitude", key),
    )


def _taken_at(data: Dict[str, Any]) -> tuple[int, str]:
    ptt = data.get("photoTakenTime")
    if not isinstance(ptt, dict):
        raise MetadataParseError("Missing or invalid 'photoTakenTime' block")
    ts = ptt.get("timestamp")
    if not isinstance(ts, str) or not _EPOCH_RE.fullmatch(ts.strip()):
        raise MetadataParseError(
            f"photoTakenTime.timestamp must be a numeric string, got: {ts!r}"
        )
    formatted = ptt.get("formatted")
    return int(ts.strip()), formatted if isinstance(formatted, str) else ""


def parse_sidecar(text: str) -> SidecarMetadata:
    """
    Decode one Takeout sidecar. Only the fields we embed are validated:
      - photoTakenTime{ timestamp } as an epoch-seconds string
      - geoData{ latitude, longitude, altitude } as numbers
    geoDataExif is consulted only when geoData is the (0, 0) placeholder.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MetadataParseError(f"Sidecar is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MetadataParseError("Sidecar must be a JSON object")

    taken_at, formatted = _taken_at(data)
    geo = _geo(data, "geoData")
    if not geo.has_location and isinstance(data.get("geoDataExif"), dict):
        try:
            exif_geo = _geo(data, "geoDataExif")
        except MetadataParseError:
            exif_geo = None
        if exif_geo is not None and exif_geo.has_location:
            geo = exif_geo

    title = data.get("title")
    description = data.get("description")
    return SidecarMetadata(
        title=title if isinstance(title, str) else "",
        description=description if isinstance(description, str) else "",
        taken_at=taken_at,
        taken_at_formatted=formatted,
        geo=geo,
    )


def load_sidecar(path: Path) -> SidecarMetadata:
    return parse_sidecar(path.read_text(encoding="utf-8"))
