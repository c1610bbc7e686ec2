from .stage import stage_serve

__all__ = ["stage_serve"]
