from __future__ import annotations

from holiday_card_web.pipeline import FunctionStage, Stage, StageGraph
from holiday_card_web.stages import (
    stage_bind,
    stage_compile,
    stage_optimize,
    stage_serve,
    stage_stats,
)

# command name -> target stage ids; prerequisites are pulled in by the graph
COMMANDS: dict[str, tuple[str, ...]] = {
    "build-web": ("optimize",),
    "run-web": ("serve",),
    "stats": ("stats",),
}

COMMAND_HELP: dict[str, str] = {
    "build-web": "Compile to wasm, generate JS bindings, optimize for size",
    "run-web": "build-web, then serve the output directory over HTTP",
    "stats": "Report line counts for the project",
}


def build_graph() -> StageGraph:
    graph = StageGraph(
        [
            FunctionStage(
                stage_id="compile",
                fn=stage_compile,
                description="cargo build for the wasm target",
            ),
            FunctionStage(
                stage_id="bind",
                fn=stage_bind,
                requires=("compile",),
                description="wasm-bindgen module + glue",
            ),
            FunctionStage(
                stage_id="optimize",
                fn=stage_optimize,
                requires=("bind",),
                description="wasm-opt in place",
            ),
            FunctionStage(
                stage_id="serve",
                fn=stage_serve,
                requires=("optimize",),
                description="static HTTP server",
            ),
            FunctionStage(
                stage_id="stats",
                fn=stage_stats,
                description="line counts",
            ),
        ]
    )
    graph.validate()
    return graph


def plan(command: str, graph: StageGraph | None = None) -> list[Stage]:
    try:
        targets = COMMANDS[command]
    except KeyError:
        raise ValueError(f"Unknown command: {command}") from None
    return (graph or build_graph()).order_for(*targets)
