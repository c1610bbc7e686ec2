from .config import Settings, load_settings
from .errors import (
    BindingFailure,
    OptimizationFailure,
    PipelineError,
    ServerStartFailure,
    StageError,
    StatsFailure,
    ToolchainFailure,
    ToolNotFoundError,
    stage_error_from_exc,
)
from .fs import (
    atomic_replace,
    atomic_write_text,
    dir_is_empty,
    file_size,
    make_tmp_path_for,
    relpath_posix,
    safe_unlink,
)
from .hashing import digest_dir, sha256_file
from .logging import ILogger, bind, configure_logging, get_logger
from .paths import WebLayout
from .provenance import RunProvenance, new_run_id
from .time import monotonic_ms, utc_now_iso

__all__ = [
    "Settings",
    "load_settings",
    "BindingFailure",
    "OptimizationFailure",
    "PipelineError",
    "ServerStartFailure",
    "StageError",
    "stage_error_from_exc",
    "StatsFailure",
    "ToolchainFailure",
    "ToolNotFoundError",
    "atomic_replace",
    "atomic_write_text",
    "dir_is_empty",
    "file_size",
    "make_tmp_path_for",
    "relpath_posix",
    "safe_unlink",
    "digest_dir",
    "sha256_file",
    "ILogger",
    "bind",
    "configure_logging",
    "get_logger",
    "WebLayout",
    "RunProvenance",
    "new_run_id",
    "monotonic_ms",
    "utc_now_iso",
]
