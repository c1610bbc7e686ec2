from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator


@dataclass(frozen=True, slots=True)
class CommentSyntax:
    line: tuple[str, ...] = ()
    block: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, slots=True)
class Language:
    name: str
    extensions: tuple[str, ...] = ()
    filenames: tuple[str, ...] = ()
    syntax: CommentSyntax = CommentSyntax()


_C_LIKE = CommentSyntax(line=("//",), block=(("/*", "*/"),))
_HASH = CommentSyntax(line=("#",))

LANGUAGES: tuple[Language, ...] = (
    Language("Rust", (".rs",), syntax=_C_LIKE),
    Language("WGSL", (".wgsl",), syntax=_C_LIKE),
    Language("GLSL", (".glsl", ".vert", ".frag"), syntax=_C_LIKE),
    Language("JavaScript", (".js", ".mjs"), syntax=_C_LIKE),
    Language("TypeScript", (".ts",), syntax=_C_LIKE),
    Language("CSS", (".css",), syntax=CommentSyntax(block=(("/*", "*/"),))),
    Language("HTML", (".html", ".htm"), syntax=CommentSyntax(block=(("<!--", "-->"),))),
    Language("Python", (".py",), syntax=_HASH),
    Language("TOML", (".toml",), syntax=_HASH),
    Language("YAML", (".yml", ".yaml"), syntax=_HASH),
    Language("Shell", (".sh", ".bash"), syntax=_HASH),
    Language("Just", (".just",), ("justfile", "Justfile", ".justfile"), syntax=_HASH),
    Language("JSON", (".json",)),
    Language("Markdown", (".md",)),
)

DEFAULT_EXCLUDE_DIRS: frozenset[str] = frozenset(
    {".git", "target", "node_modules", "__pycache__", ".venv", "venv", "_runs"}
)


@dataclass(frozen=True, slots=True)
class FileStats:
    lines: int
    code: int
    comments: int
    blanks: int


@dataclass(slots=True)
class LanguageStats:
    language: str
    files: int = 0
    lines: int = 0
    code: int = 0
    comments: int = 0
    blanks: int = 0

    def add(self, fs: FileStats) -> None:
        self.files += 1
        self.lines += fs.lines
        self.code += fs.code
        self.comments += fs.comments
        self.blanks += fs.blanks


@dataclass(slots=True)
class TreeStats:
    root: str
    languages: dict[str, LanguageStats] = field(default_factory=dict)

    def total(self) -> LanguageStats:
        t = LanguageStats(language="Total")
        for ls in self.languages.values():
            t.files += ls.files
            t.lines += ls.lines
            t.code += ls.code
            t.comments += ls.comments
            t.blanks += ls.blanks
        return t

    def sorted(self) -> list[LanguageStats]:
        return sorted(self.languages.values(), key=lambda x: (-x.code, x.language))


def detect_language(path: Path, languages: Iterable[Language] = LANGUAGES) -> Language | None:
    for lang in languages:
        if path.name in lang.filenames or path.suffix.lower() in lang.extensions:
            return lang
    return None


def count_lines(text: str, syntax: CommentSyntax) -> FileStats:
    """
    Classify each line as blank, comment or code.

    Heuristic, like most counters: comment markers inside string
    literals are not recognised and nested block comments are not
    tracked. A line holding code and a trailing comment counts as code.
    """
    code = comments = blanks = 0
    block_end: str | None = None
    lines = text.splitlines()

    for raw in lines:
        line = raw.strip()

        if block_end is not None:
            comments += 1
            if block_end in line:
                block_end = None
            continue

        if not line:
            blanks += 1
            continue

        if syntax.line and line.startswith(syntax.line):
            comments += 1
            continue

        opened = next((b for b in syntax.block if line.startswith(b[0])), None)
        if opened is not None:
            start, end = opened
            comments += 1
            if end not in line[len(start) :]:
                block_end = end
            continue

        code += 1
        for start, end in syntax.block:
            i = line.find(start)
            if i != -1 and end not in line[i + len(start) :]:
                block_end = end
                break

    return FileStats(lines=len(lines), code=code, comments=comments, blanks=blanks)


def iter_source_files(
    root: Path, *, exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS
) -> Iterator[Path]:
    excluded = set(exclude_dirs)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames if d not in excluded and not d.startswith(".")
        )
        for name in sorted(filenames):
            yield Path(dirpath) / name


def count_tree(
    root: Path,
    *,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    languages: Iterable[Language] = LANGUAGES,
) -> TreeStats:
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    langs = tuple(languages)
    stats = TreeStats(root=str(root))
    for path in iter_source_files(root, exclude_dirs=exclude_dirs):
        lang = detect_language(path, langs)
        if lang is None:
            continue
        text = path.read_text(encoding="utf-8", errors="replace")
        per_lang = stats.languages.setdefault(lang.name, LanguageStats(language=lang.name))
        per_lang.add(count_lines(text, lang.syntax))
    return stats
