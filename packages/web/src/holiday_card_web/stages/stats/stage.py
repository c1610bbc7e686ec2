from __future__ import annotations

from pathlib import Path

from holiday_card_web.core import Settings, StatsFailure
from holiday_card_web.pipeline import RunContext, StageOutput
from holiday_card_web.pipeline.events import EventType
from holiday_card_web.tools import Command
from rich.console import Console

from ..tooling import run_tool
from .counter import DEFAULT_EXCLUDE_DIRS, count_tree
from .render import render_stats

STAGE_ID = "stats"

console = Console()


def stats_command(s: Settings, root: Path) -> Command:
    return Command.of(s.tokei_bin, root, cwd=root)


def _exclude_dirs(s: Settings) -> set[str]:
    return set(DEFAULT_EXCLUDE_DIRS) | {
        Path(s.cargo_target_dir).name,
        Path(s.run_root).name,
    }


def stage_stats(ctx: RunContext) -> StageOutput:
    """
    Report line counts for the whole project. Reads only.
    """
    s = ctx.settings
    root = ctx.layout.root

    if s.stats_engine == "tokei":
        res = run_tool(ctx, stage=STAGE_ID, cmd=stats_command(s, root), failure=StatsFailure)
        return StageOutput(
            values={"engine": "tokei", "root": str(root)},
            metrics={"tool_ms": res.duration_ms},
        )

    try:
        stats = count_tree(root, exclude_dirs=_exclude_dirs(s))
    except OSError as e:
        raise StatsFailure(f"Cannot scan {root}: {e}") from e

    render_stats(stats, console)
    total = stats.total()
    totals = {
        "files": total.files,
        "lines": total.lines,
        "code": total.code,
        "comments": total.comments,
        "blanks": total.blanks,
    }
    ctx.emit(
        EventType.STATS_REPORT,
        stage=STAGE_ID,
        languages={ls.language: ls.code for ls in stats.sorted()},
        **totals,
    )
    return StageOutput(values={"engine": "builtin", "root": str(root)}, metrics=totals)
