import hashlib
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FileDigest:
    sha256: str
    bytes: int


def sha256_file(path: Path, *, chunk_bytes: int = 1024 * 1024) -> FileDigest:
    h = hashlib.sha256()
    total = 0
    with path.open("rb") as f:
        while True:
            b = f.read(chunk_bytes)
            if not b:
                break
            h.update(b)
            total += len(b)

    return FileDigest(sha256=h.hexdigest(), bytes=total)


def digest_dir(root: Path) -> dict[str, str]:
    """
    Map every file under `root` (posix relpath) to its sha256.
    """
    root = Path(root)
    return {
        p.relative_to(root).as_posix(): sha256_file(p).sha256
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }
