from .stage import bind_command, stage_bind

__all__ = ["bind_command", "stage_bind"]
