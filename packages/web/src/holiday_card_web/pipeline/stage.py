from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Optional, Protocol

from holiday_card_web.core import (
    PipelineError,
    StageError,
    monotonic_ms,
    stage_error_from_exc,
    utc_now_iso,
)

from .context import ArtifactRef, RunContext
from .events import EventType

StageStatus = Literal["success", "failed"]


@dataclass(slots=True)
class StageOutput:
    """
    What a stage function hands back on success.

    `values` land in the run report as the stage's outputs; the rest is
    surfaced as events and log lines by `run_stage`.
    """

    values: dict[str, Any] = field(default_factory=dict)
    metrics: dict[str, Any] = field(default_factory=dict)
    artifacts: list[ArtifactRef] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class StageResult:
    stage: str
    status: StageStatus
    started_at_utc: str
    finished_at_utc: str
    duration_ms: int

    outputs: dict[str, Any] = field(default_factory=dict)
    metrics: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    artifacts: list[ArtifactRef] = field(default_factory=list)
    error: Optional[StageError] = None

    @property
    def returncode(self) -> int | None:
        return self.error.returncode if self.error else None


class Stage(Protocol):
    stage_id: str
    requires: tuple[str, ...]

    def run(self, ctx: RunContext) -> StageOutput | None: ...


StageFn = Callable[[RunContext], StageOutput | None]


@dataclass(slots=True)
class FunctionStage:
    stage_id: str
    fn: StageFn
    requires: tuple[str, ...] = ()
    description: str = ""

    def run(self, ctx: RunContext) -> StageOutput | None:
        return self.fn(ctx)


def _as_output(stage_id: str, out: object) -> StageOutput:
    if out is None:
        return StageOutput()
    if not isinstance(out, StageOutput):
        raise TypeError(
            f"Stage {stage_id} returned {type(out).__name__}, expected StageOutput or None"
        )
    return out


def run_stage(
    *, ctx: RunContext, stage: Stage, position: str | None = None
) -> StageResult:
    """
    Run one stage and turn whatever happens into a StageResult.

    Exceptions never escape (KeyboardInterrupt aside): a failure is
    recorded with its tool argv and exit status so the runner can stop.
    """
    sid = stage.stage_id
    log = ctx.stage_logger(sid).bind(position=position)
    started_at = utc_now_iso()
    t0 = monotonic_ms()

    ctx.emit(EventType.STAGE_START, stage=sid)
    log.info("Stage starting")

    try:
        out = _as_output(sid, stage.run(ctx))
    except Exception as e:
        duration = monotonic_ms() - t0
        err = stage_error_from_exc(e)
        ctx.emit(
            EventType.STAGE_FAILED,
            stage=sid,
            duration_ms=duration,
            exc_type=err.exc_type,
            message=err.message,
            returncode=err.returncode,
        )
        log.error(
            "Stage failed",
            duration_ms=duration,
            error=err.message,
            error_type=err.exc_type,
            returncode=err.returncode,
        )
        # Tool failures already printed their own diagnostics.
        if not isinstance(e, PipelineError):
            log.exception("Stage exception")
        return StageResult(
            stage=sid,
            status="failed",
            started_at_utc=started_at,
            finished_at_utc=utc_now_iso(),
            duration_ms=duration,
            error=err,
        )

    for w in out.warnings:
        ctx.emit(EventType.STAGE_WARN, stage=sid, message=w)
        log.warning(w)
    if out.metrics:
        ctx.emit(EventType.STAGE_METRICS, stage=sid, metrics=out.metrics)

    duration = monotonic_ms() - t0
    ctx.emit(EventType.STAGE_SUCCESS, stage=sid, duration_ms=duration)
    log.info(
        "Stage succeeded",
        duration_ms=duration,
        outputs=sorted(out.values),
        artifacts=len(out.artifacts),
        warnings=len(out.warnings),
    )
    return StageResult(
        stage=sid,
        status="success",
        started_at_utc=started_at,
        finished_at_utc=utc_now_iso(),
        duration_ms=duration,
        outputs=dict(out.values),
        metrics=dict(out.metrics),
        warnings=list(out.warnings),
        artifacts=list(out.artifacts),
    )
