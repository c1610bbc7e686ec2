from .stage import optimize_command, reduction_pct, stage_optimize

__all__ = ["optimize_command", "reduction_pct", "stage_optimize"]
