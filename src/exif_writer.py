from __future__ import annotations

import os
from pathlib import Path
from struct import error as struct_error
from typing import Any, Dict, Optional

import piexif
from loguru import logger
from PIL import Image, PngImagePlugin, UnidentifiedImageError
from pillow_heif import register_heif_opener

from errors import MetadataWriteError
from geo_utils import altitude_rational, decimal_to_dms, lat_ref, lon_ref
from types_ import GeoData

register_heif_opener()

# Panoramas routinely exceed the default pixel limit
Image.MAX_IMAGE_PIXELS = None

# piexif can splice EXIF into these without touching pixel data
_INSERT_EXTS = {".jpg", ".jpeg", ".webp"}
# These need a Pillow re-save to carry the new EXIF block
_RESAVE_EXTS = {".png", ".tiff", ".heic"}


class MetadataWriter:
    """Interface for embedding capture date / GPS into a photo file in place."""

    def write(self, path: Path, capture_date: str, geo: Optional[GeoData]) -> None:
        raise NotImplementedError


def _empty_exif() -> Dict[str, Any]:
    return {
        "0th": {},
        "Exif": {},
        "GPS": {},
        "Interop": {},
        "1st": {},
        "thumbnail": None,
    }


def _load_exif_dict(path: Path, ext: str) -> Dict[str, Any]:
    """
    Start from whatever EXIF the file already carries so nothing else is lost.
    JPEG/WebP/TIFF are read by piexif directly; PNG/HEIC via Pillow's info["exif"].
    """
    if ext in (".jpg", ".jpeg", ".webp", ".tiff"):
        try:
            exif_dict = piexif.load(str(path))
        except piexif.InvalidImageDataError as e:
            # WebP without an EXIF chunk
            logger.debug("No EXIF to start from in {}: {}", path.name, e)
            exif_dict = _empty_exif()
    else:
        with Image.open(path) as im:
            raw = im.info.get("exif")
        exif_dict = piexif.load(raw) if raw else _empty_exif()
    for key, default in _empty_exif().items():
        exif_dict.setdefault(key, default)
    return exif_dict


def apply_tags(
    exif_dict: Dict[str, Any], capture_date: str, geo: Optional[GeoData]
) -> Dict[str, Any]:
    exif_dict["Exif"][piexif.ExifIFD.DateTimeOriginal] = capture_date
    exif_dict["Exif"][piexif.ExifIFD.DateTimeDigitized] = capture_date
    exif_dict["0th"][piexif.ImageIFD.DateTime] = capture_date

    if geo is not None and geo.has_location:
        alt_ref, alt = altitude_rational(geo.altitude)
        exif_dict["GPS"].update(
            {
                piexif.GPSIFD.GPSVersionID: (2, 2, 0, 0),
                piexif.GPSIFD.GPSLatitudeRef: lat_ref(geo.latitude),
                piexif.GPSIFD.GPSLatitude: decimal_to_dms(geo.latitude),
                piexif.GPSIFD.GPSLongitudeRef: lon_ref(geo.longitude),
                piexif.GPSIFD.GPSLongitude: decimal_to_dms(geo.longitude),
                piexif.GPSIFD.GPSAltitudeRef: alt_ref,
                piexif.GPSIFD.GPSAltitude: alt,
            }
        )
    return exif_dict


def _png_text(im: Image.Image) -> PngImagePlugin.PngInfo:
    info = PngImagePlugin.PngInfo()
    for key, value in im.text.items():
        if isinstance(value, PngImagePlugin.iTXt):
            info.add_itxt(key, value, value.lang, value.tkey)
        else:
            info.add_text(key, value)
    return info


def _resave_with_exif(path: Path, exif_bytes: bytes) -> None:
    tmp = path.with_name(path.name + ".tmp")
    try:
        with Image.open(path) as im:
            im.load()
            kwargs: Dict[str, Any] = {"format": im.format, "exif": exif_bytes}
            if im.info.get("icc_profile"):
                kwargs["icc_profile"] = im.info["icc_profile"]
            if im.format == "PNG" and im.text:
                kwargs["pnginfo"] = _png_text(im)
            if im.format == "TIFF" and getattr(im, "n_frames", 1) > 1:
                kwargs["save_all"] = True
            if im.format == "HEIF":
                # quality=-1 is lossless in pillow-heif
                kwargs["quality"] = -1
                if im.info.get("xmp"):
                    kwargs["xmp"] = im.info["xmp"]
            im.save(tmp, **kwargs)
        os.replace(tmp, path)
    finally:
        if tmp.exists():
            tmp.unlink()


class PiexifMetadataWriter(MetadataWriter):
    def write(self, path: Path, capture_date: str, geo: Optional[GeoData]) -> None:
        path = Path(path)
        ext = path.suffix.lower()
        if ext not in _INSERT_EXTS and ext not in _RESAVE_EXTS:
            raise MetadataWriteError(f"No EXIF container for {ext} files: {path.name}")

        try:
            exif_dict = apply_tags(_load_exif_dict(path, ext), capture_date, geo)
            exif_bytes = piexif.dump(exif_dict)
            if ext in _INSERT_EXTS:
                piexif.insert(exif_bytes, str(path))
            else:
                _resave_with_exif(path, exif_bytes)
        except (
            UnidentifiedImageError,
            OSError,
            OverflowError,
            ValueError,
            KeyError,
            TypeError,
            struct_error,
        ) as e:
            raise MetadataWriteError(f"Failed to write EXIF to {path.name}: {e}") from e

        logger.debug(
            "exif: {} <- {} gps={}", path.name, capture_date, bool(geo and geo.has_location)
        )
