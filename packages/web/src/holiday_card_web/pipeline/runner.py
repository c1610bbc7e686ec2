from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Sequence

from holiday_card_web.core import (
    ILogger,
    RunProvenance,
    Settings,
    WebLayout,
    get_logger,
    monotonic_ms,
    new_run_id,
    utc_now_iso,
)
from holiday_card_web.server import DevServer
from holiday_card_web.tools import Runnable, SubprocessRunnable

from .context import RunContext, ServerFactory
from .events import EventSink, EventType
from .report import RunReport
from .stage import Stage, StageResult, run_stage


@dataclass(slots=True)
class RunnerConfig:
    stop_on_failure: bool = True


class PipelineRunner:
    """
    Run an already-ordered list of stages one after another.

    Each stage blocks until done. With `stop_on_failure` (the default)
    nothing after the first failed stage is invoked.
    """

    def __init__(
        self,
        *,
        stages: Sequence[Stage],
        cfg: RunnerConfig | None = None,
        logger: ILogger | None = None,
        tools: Runnable | None = None,
        server_factory: ServerFactory | None = None,
    ) -> None:
        self.stages = list(stages)
        self.cfg = cfg or RunnerConfig()
        self.logger: ILogger = logger or get_logger("pipeline")
        self.tools: Runnable = tools or SubprocessRunnable()
        self.server_factory: ServerFactory = server_factory or DevServer

        ids = [s.stage_id for s in self.stages]
        if len(ids) != len(set(ids)):
            dupes = sorted({x for x in ids if ids.count(x) > 1})
            raise ValueError(f"Duplicate stage_id(s): {dupes}")

    def _run_all(self, ctx: RunContext, results: list[StageResult]) -> None:
        total = len(self.stages)
        for idx, st in enumerate(self.stages, start=1):
            res = run_stage(ctx=ctx, stage=st, position=f"{idx}/{total}")
            results.append(res)
            if res.status == "failed" and self.cfg.stop_on_failure:
                self.logger.error(
                    "Stopping on first failure",
                    stage=st.stage_id,
                    returncode=res.returncode,
                    skipped=[s.stage_id for s in self.stages[idx:]],
                )
                return

    def run(
        self,
        *,
        settings: Settings,
        command: str = "",
        run_id: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> tuple[int, Path]:
        """
        Execute the stages, writing events.jsonl and run_report.json
        under `<run_root>/<run_id>/`.

        Returns (exit_code, report_path). A KeyboardInterrupt is re-raised
        once the report for the partial run is on disk.
        """
        meta = meta or {}
        rid = run_id or new_run_id()
        run_dir = Path(settings.run_root) / rid
        events_path = run_dir / "events.jsonl"
        report_path = run_dir / "run_report.json"
        planned = [s.stage_id for s in self.stages]

        started_at = utc_now_iso()
        t0 = monotonic_ms()
        results: list[StageResult] = []
        interrupted = False

        with EventSink(events_path, run_id=rid) as sink:
            ctx = RunContext(
                run_id=rid,
                run_root=run_dir,
                settings=settings,
                layout=WebLayout.from_settings(settings),
                logger=self.logger,
                events=sink,
                tools=self.tools,
                server_factory=self.server_factory,
                meta=meta,
            )
            self.logger.info(
                "Pipeline starting",
                run_id=rid,
                command=command,
                stages=planned,
                project_root=str(ctx.layout.root),
            )
            ctx.emit(EventType.RUN_START, command=command, stages=planned)

            try:
                self._run_all(ctx, results)
            except KeyboardInterrupt:
                # subprocess.run has already killed the running tool.
                interrupted = True
                self.logger.error("Interrupted", skipped=planned[len(results) :])

            report = RunReport(
                run_id=rid,
                command=command,
                started_at_utc=started_at,
                finished_at_utc=utc_now_iso(),
                duration_ms=monotonic_ms() - t0,
                planned=planned,
                stages=results,
                events_jsonl=str(events_path),
                provenance=asdict(RunProvenance(run_id=rid, started_at_utc=started_at)),
                meta=meta,
            )
            report.write_json(report_path)
            ctx.emit(
                EventType.RUN_FINISH,
                status=report.status,
                duration_ms=report.duration_ms,
                report_json=str(report_path),
            )

        self.logger.info(
            "Run complete",
            status=report.status,
            duration_ms=report.duration_ms,
            report=str(report_path),
        )
        if interrupted:
            raise KeyboardInterrupt
        return (0 if report.status == "success" else 1), report_path
