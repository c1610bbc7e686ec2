from .stage import compile_command, stage_compile

__all__ = ["compile_command", "stage_compile"]
