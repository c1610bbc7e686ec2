from __future__ import annotations

from holiday_card_web.core import ServerStartFailure, dir_is_empty
from holiday_card_web.pipeline import RunContext, StageOutput
from holiday_card_web.pipeline.events import EventType

STAGE_ID = "serve"


def stage_serve(ctx: RunContext) -> StageOutput:
    """
    Serve the web root until interrupted. Read-only.
    """
    layout = ctx.layout
    s = ctx.settings
    log = ctx.stage_logger(STAGE_ID)

    out_dir = layout.out_dir()
    if not out_dir.is_dir() or dir_is_empty(out_dir):
        raise ServerStartFailure(f"Output directory missing or empty: {out_dir}")
    for p in (layout.module_wasm(), layout.glue_js()):
        if not p.is_file():
            raise ServerStartFailure(f"Missing build output: {p}")

    root = layout.serve_root()
    srv = ctx.server_factory(root, s.port, s.host).bind()

    ctx.emit(EventType.SERVE_LISTENING, stage=STAGE_ID, url=srv.url, root=str(root))
    log.info("Serving", url=srv.url, root=str(root), stop="Ctrl-C")

    srv.serve_forever()

    ctx.emit(EventType.SERVE_STOPPED, stage=STAGE_ID, url=srv.url)
    log.info("Server stopped", url=srv.url)
    return StageOutput(values={"url": srv.url, "serve_root": str(root)})
