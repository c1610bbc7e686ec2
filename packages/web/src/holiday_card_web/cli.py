from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from holiday_card_web.core import (
    Settings,
    bind,
    configure_logging,
    get_logger,
    load_settings,
    new_run_id,
)
from holiday_card_web.pipeline import (
    FunctionStage,
    PipelineRunner,
    RunnerConfig,
    Stage,
    StageFn,
    read_report,
)
from holiday_card_web.tasks import COMMAND_HELP, COMMANDS, build_graph, plan
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

console = Console()

EXIT_INTERRUPTED = 130
EXIT_BAD_CONFIG = 2


@dataclass(frozen=True, slots=True)
class _CommonArgs:
    cmd: str
    project_root: str | None
    run_root: str | None
    port: int | None = None
    builtin: bool = False


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a port number: {value!r}") from None
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port must be 0-65535, got {port}")
    return port


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--project-root",
        default=None,
        help="Crate root (contains Cargo.toml). Default: HOLIDAY_CARD_WEB_PROJECT_ROOT or '.'",
    )
    p.add_argument(
        "--run-root",
        default=None,
        help="Where run reports and events are written. Default: _runs",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="holiday-card-web")
    sub = p.add_subparsers(dest="cmd", required=True)

    for cmd, help_text in COMMAND_HELP.items():
        sp = sub.add_parser(cmd, help=help_text)
        _add_common_args(sp)
        if cmd == "run-web":
            sp.add_argument(
                "--port", type=_port, default=None, help="HTTP port (default 8888)"
            )
        if cmd == "stats":
            sp.add_argument(
                "--builtin",
                action="store_true",
                help="Count lines in-process instead of shelling out to tokei",
            )

    pp = sub.add_parser("plan", help="Show the stage order a command would run")
    pp.add_argument("target", choices=sorted(COMMANDS))

    return p


def _common(args: argparse.Namespace) -> _CommonArgs:
    return _CommonArgs(
        cmd=str(args.cmd),
        project_root=getattr(args, "project_root", None),
        run_root=getattr(args, "run_root", None),
        port=getattr(args, "port", None),
        builtin=bool(getattr(args, "builtin", False)),
    )


def _apply_overrides(s: Settings, common: _CommonArgs) -> Settings:
    update: dict[str, Any] = {}
    if common.project_root:
        update["project_root"] = Path(common.project_root)
    if common.run_root:
        update["run_root"] = Path(common.run_root)
    if common.port is not None:
        update["port"] = common.port
    if common.builtin:
        update["stats_engine"] = "builtin"
    if not update:
        return s
    # Re-validate so overrides obey the same bounds as env values.
    return Settings.model_validate({**s.model_dump(), **update})


def _with_banner(stage_id: str, fn: StageFn) -> StageFn:
    # No spinner: tools write straight to the terminal.
    def _run_with_banner(ctx):
        console.rule(f"[bold]{stage_id}[/]")
        return fn(ctx)

    return _run_with_banner


def _build_stages(cmd: str) -> list[Stage]:
    return [
        FunctionStage(
            stage_id=st.stage_id,
            fn=_with_banner(st.stage_id, st.run),
            requires=tuple(st.requires),
        )
        for st in plan(cmd)
    ]


def _print_plan(target: str) -> int:
    graph = build_graph()
    tbl = Table(title=f"Plan: {target}", show_header=True, box=None)
    tbl.add_column("#", justify="right")
    tbl.add_column("stage", style="bold")
    tbl.add_column("requires")
    for i, st in enumerate(plan(target, graph), start=1):
        tbl.add_row(str(i), st.stage_id, ", ".join(st.requires) or "-")
    console.print(tbl)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    common = _common(args)

    if common.cmd == "plan":
        return _print_plan(str(args.target))

    try:
        s = _apply_overrides(load_settings(), common)
    except ValidationError as e:
        console.print("[red]invalid settings[/red]")
        console.print(Text(str(e)))
        return EXIT_BAD_CONFIG
    configure_logging(level=s.log_level, fmt=s.log_format)
    log = get_logger("holiday_card_web")

    run_id = new_run_id()
    bind(run_id=run_id, command=common.cmd)

    stages = _build_stages(common.cmd)

    runner = PipelineRunner(
        stages=stages, cfg=RunnerConfig(stop_on_failure=True), logger=log
    )

    console.print(
        Panel.fit(
            Text(
                f"holiday-card-web - {common.cmd}\nrun_id={run_id}\n"
                f"stages={' -> '.join(st.stage_id for st in stages)}",
                style="bold",
            ),
            title="Run",
        )
    )

    try:
        exit_code, report_path = runner.run(
            settings=s,
            command=common.cmd,
            run_id=run_id,
            meta={"project_root": str(s.project_root)},
        )
    except KeyboardInterrupt:
        console.print("[red]interrupted[/red]")
        return EXIT_INTERRUPTED

    tbl = Table(title="Result", show_header=True, box=None)
    tbl.add_row(
        "status", "[green]ok[/green]" if exit_code == 0 else "[red]failed[/red]"
    )
    report = read_report(report_path)
    for st in report["stages"]:
        if st["status"] == "failed":
            err = st["error"]
            rc = err.get("returncode")
            tbl.add_row(
                "failed",
                Text(
                    f"{st['stage']}: {err['message']}"
                    + (f" (exit {rc})" if rc is not None else "")
                ),
            )
    if report["skipped"]:
        tbl.add_row("skipped", ", ".join(report["skipped"]))
    tbl.add_row("report", str(report_path))
    console.print(tbl)

    return int(exit_code)


if __name__ == "__main__":
    raise SystemExit(main())
