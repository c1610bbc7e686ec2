from __future__ import annotations

from pathlib import Path

from holiday_card_web.core import (
    OptimizationFailure,
    Settings,
    atomic_replace,
    digest_dir,
    file_size,
    make_tmp_path_for,
    safe_unlink,
)
from holiday_card_web.pipeline import RunContext, StageOutput
from holiday_card_web.tools import Command

from ..tooling import run_tool

STAGE_ID = "optimize"


def optimize_command(s: Settings, module: Path, out: Path, *, cwd: Path) -> Command:
    return Command.of(s.wasm_opt_bin, s.opt_level, "-o", out, module, cwd=cwd)


def reduction_pct(before: int, after: int) -> float:
    if before <= 0:
        return 0.0
    return round((before - after) / before * 100, 1)


def stage_optimize(ctx: RunContext) -> StageOutput:
    """
    Rewrite the bound module in place with the size optimizer.

    The optimizer writes to a sibling temp file which is renamed over the
    module only after a clean exit. On failure the temp file is dropped,
    the module keeps its pre-optimization bytes, and the run aborts.
    """
    layout = ctx.layout
    module = layout.module_wasm()
    if not module.is_file():
        raise OptimizationFailure(f"Missing module to optimize: {module}")

    before = file_size(module)
    tmp = make_tmp_path_for(module)
    try:
        res = run_tool(
            ctx,
            stage=STAGE_ID,
            cmd=optimize_command(ctx.settings, module, tmp, cwd=layout.root),
            failure=OptimizationFailure,
        )
        if not tmp.is_file() or file_size(tmp) == 0:
            raise OptimizationFailure(
                f"Optimizer exited 0 but wrote no output for {module}",
                argv=res.argv,
            )
        atomic_replace(tmp, module)
    finally:
        safe_unlink(tmp)

    after = file_size(module)
    art = ctx.record_artifact(stage=STAGE_ID, path=module, content_type="application/wasm")

    ctx.stage_logger(STAGE_ID).info(
        "Module optimized",
        bytes_before=before,
        bytes_after=after,
        reduction_pct=reduction_pct(before, after),
    )
    return StageOutput(
        values={
            "module_wasm": str(module),
            "out_dir_sha256": digest_dir(layout.out_dir()),
        },
        metrics={
            "tool_ms": res.duration_ms,
            "bytes_before": before,
            "bytes_after": after,
            "reduction_pct": reduction_pct(before, after),
        },
        artifacts=[art],
    )
