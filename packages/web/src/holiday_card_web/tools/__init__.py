from .runnable import (
    CallableRunnable,
    Command,
    CommandResult,
    Runnable,
    SubprocessRunnable,
    ToolHandler,
)

__all__ = [
    "CallableRunnable",
    "Command",
    "CommandResult",
    "Runnable",
    "SubprocessRunnable",
    "ToolHandler",
]
