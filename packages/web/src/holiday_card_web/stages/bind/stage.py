from __future__ import annotations

from holiday_card_web.core import BindingFailure, Settings, WebLayout, safe_unlink
from holiday_card_web.core.config import BINDGEN_TARGET
from holiday_card_web.pipeline import RunContext, StageOutput
from holiday_card_web.tools import Command

from ..tooling import run_tool

STAGE_ID = "bind"


def bind_command(s: Settings, layout: WebLayout) -> Command:
    return Command.of(
        s.wasm_bindgen_bin,
        "--no-typescript",
        "--target",
        BINDGEN_TARGET,
        "--out-dir",
        layout.out_dir(),
        "--out-name",
        s.out_name,
        layout.compiled_wasm(),
        cwd=layout.root,
    )


def stage_bind(ctx: RunContext) -> StageOutput:
    layout = ctx.layout
    log = ctx.stage_logger(STAGE_ID)

    compiled = layout.compiled_wasm()
    if not compiled.is_file():
        raise BindingFailure(f"Missing compiled artifact: {compiled}")

    # --no-typescript does not clean up declarations left by older runs.
    for stale in layout.declaration_files():
        if stale.exists():
            log.info("Removing stale declaration file", path=str(stale))
            safe_unlink(stale)

    res = run_tool(
        ctx,
        stage=STAGE_ID,
        cmd=bind_command(ctx.settings, layout),
        failure=BindingFailure,
    )

    module = layout.module_wasm()
    glue = layout.glue_js()
    for label, p in (("module", module), ("glue", glue)):
        if not p.is_file():
            raise BindingFailure(f"Binding generator produced no {label} file: {p}")

    warnings = [
        f"Unexpected declaration file: {p}"
        for p in layout.declaration_files()
        if p.exists()
    ]

    artifacts = [
        ctx.record_artifact(stage=STAGE_ID, path=module, content_type="application/wasm"),
        ctx.record_artifact(stage=STAGE_ID, path=glue, content_type="text/javascript"),
    ]
    return StageOutput(
        values={"module_wasm": str(module), "glue_js": str(glue)},
        metrics={
            "tool_ms": res.duration_ms,
            "module_bytes": artifacts[0].bytes,
            "glue_bytes": artifacts[1].bytes,
        },
        artifacts=artifacts,
        warnings=warnings,
    )
