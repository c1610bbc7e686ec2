from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from holiday_card_web.core import utc_now_iso


class EventType(str, Enum):
    RUN_START = "run.start"
    RUN_FINISH = "run.finish"

    STAGE_START = "stage.start"
    STAGE_WARN = "stage.warn"
    STAGE_METRICS = "stage.metrics"
    STAGE_SUCCESS = "stage.success"
    STAGE_FAILED = "stage.failed"

    ARTIFACT_WRITTEN = "artifact.written"

    TOOL_START = "tool.start"
    TOOL_FINISH = "tool.finish"

    SERVE_LISTENING = "serve.listening"
    SERVE_STOPPED = "serve.stopped"

    STATS_REPORT = "stats.report"


@dataclass(frozen=True, slots=True)
class Event:
    type: str
    ts_utc: str
    run_id: str
    stage: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)


class EventSink:
    """
    events.jsonl for one run: one compact, key-sorted JSON object per line.

    Lines are flushed as they are written so a run killed mid-build still
    leaves everything up to the interrupt on disk.
    """

    def __init__(self, path: Path, *, run_id: str) -> None:
        self.path = Path(path)
        self.run_id = run_id
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self.path.open("a", encoding="utf-8")
        self._lock = threading.Lock()

    def emit(
        self, event_type: EventType | str, *, stage: str | None = None, **data: Any
    ) -> Event:
        event = Event(
            type=event_type.value if isinstance(event_type, EventType) else event_type,
            ts_utc=utc_now_iso(),
            run_id=self.run_id,
            stage=stage,
            data=data,
        )
        line = json.dumps(
            asdict(event), sort_keys=True, ensure_ascii=False, separators=(",", ":")
        )
        with self._lock:
            self._fh.write(line + "\n")
            self._fh.flush()
        return event

    def close(self) -> None:
        with self._lock:
            self._fh.close()

    def __enter__(self) -> "EventSink":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
