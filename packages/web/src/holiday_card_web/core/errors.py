from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Sequence


class PipelineError(RuntimeError):
    """Base error"""

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str] | None = None,
        returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.argv = tuple(argv) if argv is not None else None
        self.returncode = returncode


@dataclass(frozen=True, slots=True)
class StageError:
    """
    What a failed stage leaves in the run report.

    `argv` and `returncode` are set when an external tool was involved.
    """

    exc_type: str
    message: str
    traceback: str
    argv: tuple[str, ...] | None = None
    returncode: int | None = None


def stage_error_from_exc(exc: BaseException) -> StageError:
    tool = exc if isinstance(exc, PipelineError) else None
    return StageError(
        exc_type=type(exc).__name__,
        message=str(exc),
        traceback=traceback.format_exc(),
        argv=tool.argv if tool else None,
        returncode=tool.returncode if tool else None,
    )


class ToolNotFoundError(PipelineError):
    """Executable could not be resolved on PATH"""


class ToolchainFailure(PipelineError):
    """
    Compiler missing, misconfigured, or the source fails to build
    """


class BindingFailure(PipelineError):
    """
    Binding generator missing or unable to process the compiled artifact
    """


class OptimizationFailure(PipelineError):
    """
    Optimizer missing, or the input module is invalid/unoptimizable
    """


class ServerStartFailure(PipelineError):
    """Port unavailable or nothing to serve"""


class StatsFailure(PipelineError):
    """Stats tool missing or scan error. Nothing depends on it."""
