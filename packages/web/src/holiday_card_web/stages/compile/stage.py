from __future__ import annotations

from pathlib import Path

from holiday_card_web.core import Settings, ToolchainFailure, WebLayout
from holiday_card_web.pipeline import RunContext, StageOutput
from holiday_card_web.tools import Command

from ..tooling import run_tool

STAGE_ID = "compile"


def compile_command(s: Settings, layout: WebLayout) -> Command:
    argv: list[str | Path] = [s.cargo_bin, "build"]
    if s.build_profile == "release":
        argv.append("--release")
    else:
        argv += ["--profile", s.build_profile]
    argv += ["--target", s.wasm_target]
    if Path(s.cargo_target_dir) != Path("target"):
        argv += ["--target-dir", layout.target_root()]
    return Command.of(*argv, cwd=layout.root)


def stage_compile(ctx: RunContext) -> StageOutput:
    layout = ctx.layout
    res = run_tool(
        ctx,
        stage=STAGE_ID,
        cmd=compile_command(ctx.settings, layout),
        failure=ToolchainFailure,
    )

    artifact = layout.compiled_wasm()
    if not artifact.is_file():
        raise ToolchainFailure(
            f"Compiler exited 0 but produced no artifact at {artifact}",
            argv=res.argv,
        )

    art = ctx.record_artifact(
        stage=STAGE_ID, path=artifact, content_type="application/wasm"
    )
    return StageOutput(
        values={"compiled_wasm": str(artifact)},
        metrics={"tool_ms": res.duration_ms, "compiled_bytes": art.bytes},
        artifacts=[art],
    )
