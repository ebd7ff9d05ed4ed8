from __future__ import annotations

import warnings
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

# --- Fast, header-only EXIF parsing (preferred) ---
import exifread
from loguru import logger

# --- Pillow fallback (handles HEIC through pillow-heif) ---
from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import GPSTAGS
from pillow_heif import register_heif_opener

from config import EXIF_DATETIME_FMT
from geo_utils import dms_to_decimal, is_zero_coord

register_heif_opener()

# Avoid DecompressionBomb warnings when Pillow opens very large images
Image.MAX_IMAGE_PIXELS = None
warnings.filterwarnings("ignore", category=Image.DecompressionBombWarning)

_EXIF_IFD = 0x8769
_GPS_IFD = 0x8825
_DATETIME_ORIGINAL = 36867
_DATETIME = 306


@dataclass
class EmbeddedMetadata:
    path: Path
    capture_date: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    altitude: Optional[float] = None


# ---------- Helpers for exifread ----------
def _to_float(x: Any) -> float:
    # exifread ratios print as "34/1" or "34"
    s = str(x)
    if "/" in s:
        num, den = s.split("/")
        return float(num) / float(den)
    return float(s)


def _ratios_to_decimal(parts: List[Any], ref: Optional[str]) -> Optional[float]:
    """
    exifread returns a list like [34/1, 3/1, 30/1].
    Convert to decimal degrees and apply N/S/E/W sign.
    """
    try:
        deg, minute, second = [_to_float(p) for p in parts]
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    val = deg + minute / 60.0 + second / 3600.0
    if ref in ("S", "W"):
        val = -val
    return val


def _values(tag: Any) -> List[Any]:
    return list(tag.values) if hasattr(tag, "values") else list(tag)


def _exifread_extract(path: Path) -> Optional[EmbeddedMetadata]:
    """
    Read EXIF with exifread without loading image pixels.
    Returns None if the file could not be parsed at all.
    """
    try:
        with path.open("rb") as f:
            tags = exifread.process_file(f, details=False)
    except Exception as e:  # exifread raises a wide range on odd files
        logger.debug("exifread failed for {}: {}", path, e)
        return None
    if not tags:
        return None

    meta = EmbeddedMetadata(path=path)
    for key in ("EXIF DateTimeOriginal", "Image DateTime"):
        if key in tags:
            meta.capture_date = str(tags[key]).strip()
            break

    lat_vals = tags.get("GPS GPSLatitude")
    lon_vals = tags.get("GPS GPSLongitude")
    if lat_vals and lon_vals:
        lat_ref = str(tags.get("GPS GPSLatitudeRef", "")).strip() or None
        lon_ref = str(tags.get("GPS GPSLongitudeRef", "")).strip() or None
        meta.lat = _ratios_to_decimal(_values(lat_vals), lat_ref)
        meta.lon = _ratios_to_decimal(_values(lon_vals), lon_ref)

    alt = tags.get("GPS GPSAltitude")
    if alt:
        try:
            meta.altitude = _to_float(_values(alt)[0])
        except (TypeError, ValueError, ZeroDivisionError, IndexError):
            meta.altitude = None
        alt_ref = tags.get("GPS GPSAltitudeRef")
        below = alt_ref is not None and _values(alt_ref)[:1] == [1]
        if meta.altitude is not None and below:
            meta.altitude = -meta.altitude
    return meta


# ---------- Pillow fallback EXIF ----------
def _pillow_extract(path: Path) -> Optional[EmbeddedMetadata]:
    try:
        with Image.open(path) as img:
            exif = img.getexif()
            exif_ifd = exif.get_ifd(_EXIF_IFD)
            gps_raw = exif.get_ifd(_GPS_IFD)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.debug("Pillow EXIF read failed for {}: {}", path, e)
        return None

    meta = EmbeddedMetadata(path=path)
    dt = exif_ifd.get(_DATETIME_ORIGINAL) or exif.get(_DATETIME)
    if dt:
        meta.capture_date = str(dt).strip()

    gps = {GPSTAGS.get(k, k): v for k, v in gps_raw.items()}
    if gps:
        meta.lat = dms_to_decimal(
            [(float(x), 1.0) for x in gps.get("GPSLatitude", [])],
            gps.get("GPSLatitudeRef"),
        )
        meta.lon = dms_to_decimal(
            [(float(x), 1.0) for x in gps.get("GPSLongitude", [])],
            gps.get("GPSLongitudeRef"),
        )
        if gps.get("GPSAltitude") is not None:
            meta.altitude = float(gps["GPSAltitude"])
            if gps.get("GPSAltitudeRef") in (1, b"\x01"):
                meta.altitude = -meta.altitude
    return meta


def read_embedded(path: Path) -> EmbeddedMetadata:
    """
    Strategy:
      1) exifread (fast, safe)
      2) Pillow fallback (including HEIC) for whatever exifread missed
    Never raises for unreadable files; fields just stay None.
    """
    path = Path(path)
    m = _exifread_extract(path) or EmbeddedMetadata(path=path)

    if m.capture_date is None or m.lat is None or m.lon is None:
        pm = _pillow_extract(path)
        if pm:
            if m.capture_date is None:
                m.capture_date = pm.capture_date
            if m.lat is None or m.lon is None:
                m.lat, m.lon = pm.lat, pm.lon
            if m.altitude is None:
                m.altitude = pm.altitude

    if is_zero_coord(m.lat, m.lon):
        m.lat = m.lon = None
    return m


def capture_epoch(meta: EmbeddedMetadata) -> Optional[int]:
    """EXIF capture dates carry no zone; they are written as UTC."""
    if not meta.capture_date:
        return None
    try:
        dt = datetime.strptime(meta.capture_date, EXIF_DATETIME_FMT)
    except ValueError:
        return None
    return int(dt.replace(tzinfo=timezone.utc).timestamp())
