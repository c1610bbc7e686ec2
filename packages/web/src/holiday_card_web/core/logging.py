from __future__ import annotations

import logging
import sys
from typing import Any, Protocol, runtime_checkable

import structlog
from rich.logging import RichHandler
from structlog.contextvars import bind_contextvars, merge_contextvars

_CONFIGURED = False


@runtime_checkable
class ILogger(Protocol):
    def debug(self, event: str, **kw: Any) -> Any: ...
    def info(self, event: str, **kw: Any) -> Any: ...
    def warning(self, event: str, **kw: Any) -> Any: ...
    def error(self, event: str, **kw: Any) -> Any: ...
    def exception(self, event: str, **kw: Any) -> Any: ...
    def bind(self, **kw: Any) -> "ILogger": ...


def log_handler(fmt: str) -> logging.Handler:
    """
    Console logs go through rich. JSON lines go to stderr: stdout is
    shared with cargo, wasm-bindgen, wasm-opt and tokei.
    """
    handler: logging.Handler
    if fmt == "json":
        handler = logging.StreamHandler(stream=sys.stderr)
    else:
        handler = RichHandler(
            rich_tracebacks=True, markup=False, show_time=False, show_path=False
        )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def configure_logging(*, level: str = "INFO", fmt: str = "console") -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level!r}")

    handler = log_handler(fmt)
    handler.setLevel(numeric)
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(numeric)

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.processors.KeyValueRenderer(sort_keys=True)
    )
    structlog.configure(
        processors=[
            merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: str = "holiday_card_web") -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind(**values: Any) -> None:
    bind_contextvars(**values)
