from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from types_ import BatchReport

RESULT_COLUMNS = ["path", "kind", "action", "destination", "gps_restored", "reason"]


class RepairLog:
    """Single-responsibility: export one BatchReport's per-record results."""

    def __init__(self, report: BatchReport):
        self.report = report

    def rows(self) -> List[Dict[str, Any]]:
        rows = []
        for r in self.report.results:
            rows.append(
                {
                    "path": str(r.media_path),
                    "kind": r.kind,
                    "action": r.action,
                    "destination": str(r.destination) if r.destination else None,
                    "gps_restored": r.gps_restored,
                    "reason": r.reason,
                }
            )
        return rows

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows(), columns=RESULT_COLUMNS)

    def to_csv(self, out_path: Path):
        self.to_frame().to_csv(out_path, index=False)

    def summary_json(self, out_path: Path):
        out_path.write_text(
            json.dumps(self.report.as_dict(), indent=2) + "\n", encoding="utf-8"
        )

    def write_reports(self, out_dir: Path) -> Path:
        out_dir.mkdir(parents=True, exist_ok=True)
        self.to_csv(out_dir / "repair_results.csv")
        self.summary_json(out_dir / "summary.json")
        failed = [f"{r.media_path}\t{r.reason}" for r in self.report.failures()]
        (out_dir / "failed.txt").write_text("\n".join(failed), encoding="utf-8")
        return out_dir
