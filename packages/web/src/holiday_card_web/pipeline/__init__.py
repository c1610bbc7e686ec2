from .context import ArtifactRef, RunContext, ServerFactory
from .events import Event, EventSink, EventType
from .graph import GraphError, StageGraph
from .report import RunReport, read_report
from .runner import PipelineRunner, RunnerConfig
from .stage import (
    FunctionStage,
    Stage,
    StageFn,
    StageOutput,
    StageResult,
    run_stage,
)

__all__ = [
    "ArtifactRef",
    "RunContext",
    "ServerFactory",
    "Event",
    "EventSink",
    "EventType",
    "GraphError",
    "StageGraph",
    "RunReport",
    "read_report",
    "PipelineRunner",
    "RunnerConfig",
    "FunctionStage",
    "Stage",
    "StageFn",
    "StageOutput",
    "StageResult",
    "run_stage",
]
