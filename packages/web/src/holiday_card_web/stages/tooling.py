from __future__ import annotations

from holiday_card_web.core import PipelineError, ToolNotFoundError
from holiday_card_web.pipeline import RunContext
from holiday_card_web.pipeline.events import EventType
from holiday_card_web.tools import Command, CommandResult


def run_tool(
    ctx: RunContext,
    *,
    stage: str,
    cmd: Command,
    failure: type[PipelineError],
) -> CommandResult:
    """
    Run one external tool for `stage` and raise `failure` unless it exits 0.

    The tool's own output is not captured or rewritten.
    """
    log = ctx.stage_logger(stage)
    log.info("Running tool", command=cmd.display(), cwd=str(cmd.cwd or "."))
    ctx.emit(EventType.TOOL_START, stage=stage, argv=list(cmd.argv))

    try:
        res = ctx.tools.run(cmd)
    except (ToolNotFoundError, OSError) as e:
        raise failure(str(e), argv=cmd.argv) from e

    ctx.emit(
        EventType.TOOL_FINISH,
        stage=stage,
        returncode=res.returncode,
        duration_ms=res.duration_ms,
    )
    if not res.ok:
        raise failure(
            f"{cmd.tool} exited with status {res.returncode}",
            argv=cmd.argv,
            returncode=res.returncode,
        )
    return res
