from .bind import stage_bind
from .compile import stage_compile
from .optimize import stage_optimize
from .serve import stage_serve
from .stats import stage_stats

__all__ = [
    "stage_compile",
    "stage_bind",
    "stage_optimize",
    "stage_serve",
    "stage_stats",
]
