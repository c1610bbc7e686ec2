from __future__ import annotations

import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Protocol, Sequence

from holiday_card_web.core import ToolNotFoundError, monotonic_ms


@dataclass(frozen=True, slots=True)
class Command:
    """
    One external tool invocation.
    """

    argv: tuple[str, ...]
    cwd: Path | None = None

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("Command.argv must not be empty")

    @classmethod
    def of(cls, *argv: str | Path, cwd: Path | None = None) -> "Command":
        return cls(argv=tuple(str(a) for a in argv), cwd=cwd)

    @property
    def tool(self) -> str:
        return self.argv[0]

    @property
    def args(self) -> tuple[str, ...]:
        return self.argv[1:]

    def display(self) -> str:
        return shlex.join(self.argv)


@dataclass(frozen=True, slots=True)
class CommandResult:
    argv: tuple[str, ...]
    returncode: int
    duration_ms: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class Runnable(Protocol):
    def run(self, cmd: Command) -> CommandResult: ...


class SubprocessRunnable:
    """
    Shell out to the real tool.

    stdout/stderr are inherited so the tool's diagnostics reach the user
    untouched. Blocks until the child exits; on KeyboardInterrupt
    subprocess.run kills the child and re-raises.
    """

    def __init__(self, *, env: Mapping[str, str] | None = None) -> None:
        self.env = dict(env) if env is not None else None

    def resolve(self, tool: str) -> str:
        found = shutil.which(tool)
        if found is None:
            raise ToolNotFoundError(f"Executable not found on PATH: {tool}")
        return found

    def run(self, cmd: Command) -> CommandResult:
        exe = self.resolve(cmd.tool)
        t0 = monotonic_ms()
        proc = subprocess.run(
            [exe, *cmd.args],
            cwd=(str(cmd.cwd) if cmd.cwd is not None else None),
            env=self.env,
            check=False,
        )
        return CommandResult(
            argv=cmd.argv,
            returncode=int(proc.returncode),
            duration_ms=monotonic_ms() - t0,
        )


ToolHandler = Callable[[Sequence[str], Path | None], int]


@dataclass(slots=True)
class CallableRunnable:
    """
    In-process variant: dispatch on the tool name to a Python callable.

    Handlers receive (args, cwd) and return an exit code. Every command
    seen is appended to `calls`, in order.
    """

    handlers: dict[str, ToolHandler] = field(default_factory=dict)
    calls: list[Command] = field(default_factory=list)

    def register(self, tool: str, handler: ToolHandler) -> None:
        self.handlers[tool] = handler

    def run(self, cmd: Command) -> CommandResult:
        handler = self.handlers.get(cmd.tool)
        if handler is None:
            raise ToolNotFoundError(f"No in-process handler for: {cmd.tool}")
        self.calls.append(cmd)
        t0 = monotonic_ms()
        rc = handler(cmd.args, cmd.cwd)
        return CommandResult(
            argv=cmd.argv, returncode=int(rc), duration_ms=monotonic_ms() - t0
        )

    def tools_called(self) -> list[str]:
        return [c.tool for c in self.calls]
