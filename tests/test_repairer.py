from pathlib import Path

import pytest

from conftest import NEW_YEAR_2021
from errors import MetadataParseError
from repairer import (
    PhotoRepairer,
    VideoRepairer,
    copy_solo,
    destination_for,
    format_exif_datetime,
    format_iso_datetime,
    repair,
    repairer_for,
)
from types_ import GeoData, MediaRecord, ScanStatus, SidecarMetadata


def _meta(ts=NEW_YEAR_2021, lat=0.0, lon=0.0, alt=0.0):
    return SidecarMetadata(
        title="t",
        description="",
        taken_at=ts,
        taken_at_formatted="",
        geo=GeoData(lat, lon, alt),
    )


def _record(path: Path) -> MediaRecord:
    path.write_bytes(b"\xff\xd8original bytes")
    return MediaRecord(path, path.with_suffix(path.suffix + ".json"), ScanStatus.READY)


def test_datetime_formats():
    assert format_exif_datetime(NEW_YEAR_2021) == "2021:01:01 00:00:00"
    assert format_iso_datetime(NEW_YEAR_2021) == "2021-01-01T00:00:00"


def test_out_of_range_timestamp():
    with pytest.raises(MetadataParseError):
        format_exif_datetime(10**18)


def test_dispatch_by_kind(fake_writer, fake_rewriter):
    assert isinstance(repairer_for(Path("a.MP4"), fake_writer, fake_rewriter), VideoRepairer)
    assert isinstance(repairer_for(Path("a.heic"), fake_writer, fake_rewriter), PhotoRepairer)


def test_photo_repair_copies_then_tags(tmp_path, fake_writer, fake_rewriter):
    src_dir, out = tmp_path / "in", tmp_path / "out"
    src_dir.mkdir()
    out.mkdir()
    rec = _record(src_dir / "IMG_1.jpg")

    outcome = repair(rec, _meta(), out, writer=fake_writer, rewriter=fake_rewriter)

    assert outcome.destination == out / "IMG_1.jpg"
    assert outcome.destination.read_bytes() == b"\xff\xd8original bytes"
    assert fake_writer.calls[0][1] == "2021:01:01 00:00:00"
    assert not outcome.gps_restored
    assert fake_rewriter.calls == []


def test_photo_gps_flag(tmp_path, fake_writer, fake_rewriter):
    rec = _record(tmp_path / "a.jpg")
    out = tmp_path / "out"
    out.mkdir()
    for lat, lon, expected in [(0.0, 0.0, False), (0.0, 2.0, True), (-1.0, 0.0, True)]:
        outcome = repair(
            rec, _meta(lat=lat, lon=lon), out, writer=fake_writer, rewriter=fake_rewriter
        )
        assert outcome.gps_restored is expected
    # altitude alone is not a location
    outcome = repair(
        rec, _meta(alt=120.0), out, writer=fake_writer, rewriter=fake_rewriter
    )
    assert not outcome.gps_restored


def test_video_repair_calls_rewriter(tmp_path, fake_writer, fake_rewriter):
    rec = _record(tmp_path / "clip.mov")
    out = tmp_path / "out"
    out.mkdir()

    outcome = repair(
        rec, _meta(lat=48.8, lon=2.3), out, writer=fake_writer, rewriter=fake_rewriter
    )

    assert fake_rewriter.calls == [(rec.media_path, out / "clip.mov", "2021-01-01T00:00:00")]
    assert outcome.gps_restored is False
    assert fake_writer.calls == []


def test_explicit_destination_and_copy_solo(tmp_path):
    rec = _record(tmp_path / "a.png")
    out = tmp_path / "out"
    out.mkdir()
    assert destination_for(rec.media_path, out) == out / "a.png"

    outcome = copy_solo(rec, out, destination=out / "a (1).png")
    assert outcome.destination == out / "a (1).png"
    assert outcome.destination.read_bytes() == rec.media_path.read_bytes()
    assert not outcome.gps_restored
