from __future__ import annotations

from rich.console import Console
from rich.table import Table

from .counter import LanguageStats, TreeStats

_COLUMNS = ("Files", "Lines", "Code", "Comments", "Blanks")


def _row(ls: LanguageStats) -> list[str]:
    return [
        ls.language,
        f"{ls.files:,}",
        f"{ls.lines:,}",
        f"{ls.code:,}",
        f"{ls.comments:,}",
        f"{ls.blanks:,}",
    ]


def stats_table(stats: TreeStats) -> Table:
    tbl = Table(title=f"Source stats: {stats.root}", show_header=True, box=None)
    tbl.add_column("Language", style="bold")
    for col in _COLUMNS:
        tbl.add_column(col, justify="right")

    for ls in stats.sorted():
        tbl.add_row(*_row(ls))
    tbl.add_section()
    tbl.add_row(*_row(stats.total()), style="bold")
    return tbl


def render_stats(stats: TreeStats, console: Console) -> None:
    console.print(stats_table(stats))
