from .counter import CommentSyntax, Language, TreeStats, count_lines, count_tree
from .render import render_stats, stats_table
from .stage import stage_stats, stats_command

__all__ = [
    "CommentSyntax",
    "Language",
    "TreeStats",
    "count_lines",
    "count_tree",
    "render_stats",
    "stats_table",
    "stage_stats",
    "stats_command",
]
