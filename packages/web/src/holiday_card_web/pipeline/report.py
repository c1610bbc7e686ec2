from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from holiday_card_web.core import atomic_write_text

from .stage import StageResult


@dataclass(slots=True)
class RunReport:
    """
    run_report.json for one command invocation.

    Only successful when every planned stage ran and none failed.
    """

    run_id: str
    command: str
    started_at_utc: str
    finished_at_utc: str
    duration_ms: int

    planned: list[str] = field(default_factory=list)
    stages: list[StageResult] = field(default_factory=list)
    events_jsonl: Optional[str] = None
    provenance: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def skipped(self) -> list[str]:
        ran = {s.stage for s in self.stages}
        return [sid for sid in self.planned if sid not in ran]

    @property
    def failed(self) -> Optional[StageResult]:
        return next((s for s in self.stages if s.status == "failed"), None)

    @property
    def status(self) -> str:
        return "success" if self.failed is None and not self.skipped else "failed"

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["status"] = self.status
        d["skipped"] = self.skipped
        return d

    def write_json(self, path: Path) -> None:
        text = json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False, indent=2)
        atomic_write_text(Path(path), text + "\n")


def read_report(path: Path) -> dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)
