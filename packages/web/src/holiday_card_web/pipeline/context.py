from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from holiday_card_web.core import (
    ILogger,
    Settings,
    WebLayout,
    relpath_posix,
    sha256_file,
)
from holiday_card_web.server import DevServer
from holiday_card_web.tools import Runnable

from .events import EventSink, EventType

ServerFactory = Callable[[Path, int, str], DevServer]


@dataclass(frozen=True, slots=True)
class ArtifactRef:
    """A file a stage wrote or rewrote, relative to the project root."""

    path: str
    bytes: int
    sha256: str
    content_type: Optional[str] = None


@dataclass(slots=True)
class RunContext:
    """
    Everything a stage may touch during one run.

    Stages reach external tools only through `tools` and the dev server
    only through `server_factory`, so tests can swap both.
    """

    run_id: str
    run_root: Path
    settings: Settings
    layout: WebLayout
    logger: ILogger
    events: EventSink

    tools: Runnable
    server_factory: ServerFactory = DevServer

    meta: dict[str, Any] = field(default_factory=dict)

    def stage_logger(self, stage: str) -> ILogger:
        return self.logger.bind(stage=stage)

    def emit(self, event: EventType | str, *, stage: str | None = None, **kw: object) -> None:
        event_value = event.value if isinstance(event, EventType) else str(event)
        self.logger.debug(event_value, stage=stage, **kw)
        self.events.emit(event_value, stage=stage, **kw)

    def record_artifact(
        self,
        *,
        stage: str,
        path: Path,
        content_type: str | None = None,
    ) -> ArtifactRef:
        digest = sha256_file(path)
        try:
            rel = relpath_posix(path, self.layout.root)
        except ValueError:
            rel = path.as_posix()
        art = ArtifactRef(
            path=rel, bytes=digest.bytes, sha256=digest.sha256, content_type=content_type
        )
        self.emit(
            EventType.ARTIFACT_WRITTEN,
            stage=stage,
            path=art.path,
            bytes=art.bytes,
            sha256=art.sha256,
        )
        return art
