from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from classifier import is_video


class ScanStatus(str, Enum):
    READY = "Ready"
    MISSING_SIDECAR = "Missing JSON"


@dataclass(frozen=True)
class MediaRecord:
    media_path: Path
    sidecar_path: Optional[Path]
    status: ScanStatus

    @property
    def is_video(self) -> bool:
        return is_video(self.media_path)

    @property
    def kind(self) -> str:
        return "video" if self.is_video else "photo"


@dataclass(frozen=True)
class GeoData:
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0

    @property
    def has_location(self) -> bool:
        # (0, 0) is what Takeout writes when it has no location
        return self.latitude != 0.0 or self.longitude != 0.0


@dataclass(frozen=True)
class SidecarMetadata:
    title: str
    description: str
    taken_at: int  # epoch seconds, UTC
    taken_at_formatted: str
    geo: GeoData


@dataclass(frozen=True)
class RepairOutcome:
    gps_restored: bool
    destination: Optional[Path] = None


@dataclass
class RecordResult:
    media_path: Path
    kind: str
    action: str  # "fixed" | "solo_copied" | "skipped" | "failed"
    destination: Optional[Path] = None
    gps_restored: bool = False
    reason: Optional[str] = None


@dataclass(frozen=True)
class ProgressEvent:
    current: int
    total: int
    filename: str
    status: str


@dataclass
class BatchReport:
    fixed_photos: int = 0
    fixed_videos: int = 0
    gps_restored: int = 0
    solo_copied: int = 0
    failed: int = 0
    skipped: int = 0
    results: List[RecordResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            self.fixed_photos
            + self.fixed_videos
            + self.solo_copied
            + self.failed
            + self.skipped
        )

    def failures(self) -> List[RecordResult]:
        return [r for r in self.results if r.action == "failed"]

    def as_dict(self) -> Dict[str, int]:
        d = asdict(self)
        d.pop("results")
        return d
