import os
import stat
import tempfile
from pathlib import Path


def safe_unlink(path: os.PathLike[str] | str) -> None:
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        return


def relpath_posix(path: Path, base_dir: Path) -> str:
    return path.relative_to(base_dir).as_posix()


def file_size(path: Path) -> int:
    return int(path.stat().st_size)


def dir_is_empty(path: Path) -> bool:
    return not any(Path(path).iterdir())


def _fsync_dir(parent: Path) -> None:
    fd = os.open(parent, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def make_tmp_path_for(path: Path) -> Path:
    """
    Reserve an empty temp file beside `path`, on the same filesystem, so
    `atomic_replace` can rename it over `path`.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
    )
    os.close(fd)
    return Path(tmp_name)


def atomic_replace(tmp_path: Path, final_path: Path) -> None:
    """Readers of `final_path` see either the old bytes or the new, never a mix."""
    final_path = Path(final_path)
    if final_path.exists():
        os.chmod(tmp_path, stat.S_IMODE(final_path.stat().st_mode))
    with open(tmp_path, "rb") as f:
        os.fsync(f.fileno())
    os.replace(tmp_path, final_path)
    _fsync_dir(final_path.parent)


def atomic_write_text(path: Path, text: str, *, encoding: str = "utf-8") -> None:
    tmp = make_tmp_path_for(path)
    try:
        tmp.write_text(text, encoding=encoding)
        os.chmod(tmp, 0o644)
        atomic_replace(tmp, path)
    finally:
        safe_unlink(tmp)
