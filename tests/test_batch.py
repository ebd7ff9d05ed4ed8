import pytest

from batch import BatchOrchestrator, repair_batch
from conftest import FakeRewriter, FakeWriter, make_image, write_sidecar
from errors import ConfigError
from exif_reader import read_embedded
from exif_writer import PiexifMetadataWriter
from scanner import analyze
from types_ import MediaRecord, ScanStatus


def _library(root):
    root.mkdir(parents=True, exist_ok=True)
    (root / "a.jpg").write_bytes(b"photo-a")
    write_sidecar(root / "a.jpg.json", lat=48.85, lon=2.35)
    (root / "b.jpg").write_bytes(b"photo-b")
    write_sidecar(root / "b.json")
    (root / "c.mp4").write_bytes(b"video-c")
    write_sidecar(root / "c.mp4.json", lat=1.0, lon=1.0)
    (root / "d.png").write_bytes(b"solo-d")
    return sorted(analyze(root), key=lambda r: r.media_path.name)


def _run(records, out, copy_solo, progress=None, writer=None, **kw):
    return repair_batch(
        records,
        out,
        copy_solo,
        progress,
        writer=writer or FakeWriter(),
        rewriter=FakeRewriter(),
        **kw,
    )


def test_counts(tmp_path):
    records = _library(tmp_path / "in")
    report = _run(records, tmp_path / "out", copy_solo=False)

    assert report.fixed_photos == 2
    assert report.fixed_videos == 1
    assert report.gps_restored == 1  # video coordinates never count
    assert report.solo_copied == 0
    assert report.skipped == 1
    assert report.failed == 0
    assert report.total == len(records)
    assert not (tmp_path / "out" / "d.png").exists()
    assert (tmp_path / "out" / "c.mp4").read_bytes() == b"video-c"


def test_copy_solo(tmp_path):
    records = _library(tmp_path / "in")
    report = _run(records, tmp_path / "out", copy_solo=True)
    assert report.solo_copied == 1
    assert report.skipped == 0
    assert (tmp_path / "out" / "d.png").read_bytes() == b"solo-d"
    assert report.as_dict() == {
        "fixed_photos": 2,
        "fixed_videos": 1,
        "gps_restored": 1,
        "solo_copied": 1,
        "failed": 0,
        "skipped": 0,
    }


def test_progress_once_per_record_before_attempt(tmp_path):
    records = _library(tmp_path / "in")
    timeline = []

    class RecordingWriter(FakeWriter):
        def write(self, path, capture_date, geo):
            timeline.append(("write", path.name))

    def progress(event):
        timeline.append(("progress", event.current, event.total, event.filename))

    _run(records, tmp_path / "out", True, progress, writer=RecordingWriter())

    events = [t for t in timeline if t[0] == "progress"]
    assert [e[1] for e in events] == [1, 2, 3, 4]
    assert all(e[2] == 4 for e in events)
    assert [e[3] for e in events] == ["a.jpg", "b.jpg", "c.mp4", "d.png"]
    assert timeline.index(("progress", 1, 4, "a.jpg")) < timeline.index(("write", "a.jpg"))
    assert timeline.index(("write", "a.jpg")) < timeline.index(("progress", 2, 4, "b.jpg"))


def test_failure_does_not_stop_batch(tmp_path):
    records = _library(tmp_path / "in")
    report = _run(
        records, tmp_path / "out", True, writer=FakeWriter(fail_on="a.jpg")
    )
    assert report.failed == 1
    assert report.fixed_photos == 1
    assert report.fixed_videos == 1
    assert report.solo_copied == 1
    assert report.total == len(records)
    (failure,) = report.failures()
    assert failure.media_path.name == "a.jpg"
    assert "disk full" in failure.reason


def test_bad_sidecar_and_vanished_source(tmp_path):
    root = tmp_path / "in"
    records = _library(root)
    (root / "b.json").write_text("{broken", encoding="utf-8")
    (root / "c.mp4").unlink()

    report = _run(records, tmp_path / "out", False)
    assert report.failed == 2
    assert report.fixed_photos == 1
    assert report.skipped == 1
    reasons = {r.media_path.name: r.reason for r in report.failures()}
    assert reasons["b.jpg"].startswith("MetadataParseError")
    assert "c.mp4" in reasons


def test_progress_errors_are_ignored(tmp_path):
    records = _library(tmp_path / "in")

    def broken(event):
        raise RuntimeError("ui gone")

    report = _run(records, tmp_path / "out", False, broken)
    assert report.fixed_photos == 2 and report.failed == 0


def test_empty_output_fails_verification(tmp_path):
    records = _library(tmp_path / "in")

    class EmptyRewriter(FakeRewriter):
        def rewrite(self, src, dst, creation_time):
            dst.write_bytes(b"")

    report = repair_batch(
        records, tmp_path / "out", False, writer=FakeWriter(), rewriter=EmptyRewriter()
    )
    assert report.failed == 1
    assert report.failures()[0].reason.startswith("VerificationError")


def test_collisions_overwrite_by_default(tmp_path):
    for sub in ("x", "y"):
        (tmp_path / "in" / sub).mkdir(parents=True)
        (tmp_path / "in" / sub / "same.jpg").write_bytes(sub.encode())
    records = analyze(tmp_path / "in")

    report = _run(records, tmp_path / "out", True)
    assert report.solo_copied == 2
    assert [p.name for p in (tmp_path / "out").iterdir()] == ["same.jpg"]


def test_collisions_dedupe(tmp_path):
    for sub in ("x", "y", "z"):
        (tmp_path / "in" / sub).mkdir(parents=True)
        (tmp_path / "in" / sub / "same.jpg").write_bytes(sub.encode())
    records = analyze(tmp_path / "in")

    _run(records, tmp_path / "out", True, dedupe_on_collision=True)
    names = sorted(p.name for p in (tmp_path / "out").iterdir())
    assert names == ["same (1).jpg", "same (2).jpg", "same.jpg"]


def test_invalid_destination(tmp_path):
    f = tmp_path / "file"
    f.write_text("x")
    with pytest.raises(ConfigError):
        _run([], f, False)
    with pytest.raises(ConfigError):
        _run([], "", False)


def test_missing_destination_is_created(tmp_path):
    report = BatchOrchestrator(FakeWriter(), FakeRewriter()).run(
        [], tmp_path / "new" / "out", False
    )
    assert report.total == 0
    assert (tmp_path / "new" / "out").is_dir()


def test_record_order_preserved(tmp_path):
    root = tmp_path / "in"
    records = list(reversed(_library(root)))
    seen = []
    _run(records, tmp_path / "out", True, lambda e: seen.append(e.filename))
    assert seen == ["d.png", "c.mp4", "b.jpg", "a.jpg"]
    # same record twice is processed twice
    dup = [MediaRecord(root / "d.png", None, ScanStatus.MISSING_SIDECAR)] * 2
    assert _run(dup, tmp_path / "out2", True).solo_copied == 2


def test_webp_without_exif_is_fixed(tmp_path):
    root = tmp_path / "in"
    make_image(root / "w.webp", fmt="WEBP")
    write_sidecar(root / "w.webp.json", lat=1.0, lon=2.0)

    report = _run(analyze(root), tmp_path / "out", False, writer=PiexifMetadataWriter())

    assert report.as_dict() == {
        "fixed_photos": 1,
        "fixed_videos": 0,
        "gps_restored": 1,
        "solo_copied": 0,
        "failed": 0,
        "skipped": 0,
    }
    m = read_embedded(tmp_path / "out" / "w.webp")
    assert m.capture_date == "2021:01:01 00:00:00"
    assert abs(m.lat - 1.0) < 1e-5
