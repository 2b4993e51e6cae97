"""Source positions, ranges and repository-relative paths."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

_U32_MAX = 2**32 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")


def _parse_u32(text: str) -> int | None:
    """Parse an unsigned 32-bit decimal integer, or return None."""
    if not _UNSIGNED.fullmatch(text):
        return None
    value = int(text)
    return value if value <= _U32_MAX else None


@dataclass(frozen=True)
class Position:
    """A 1-based line and column."""

    line: int
    column: int


@dataclass(frozen=True)
class Range:
    """A span between two positions."""

    start: Position
    end: Position


@dataclass(frozen=True)
class Location:
    """A range inside a file, with the path relative to the repository when possible."""

    path: str
    range: Range


@dataclass(frozen=True)
class FilePosition:
    """A ``path:line:column`` reference given by a user."""

    path: str
    line: int
    column: int


def parse_file_position(text: str) -> FilePosition | None:
    """Parse ``path:line:column``; line and column must be positive."""
    left, sep, column_text = text.rpartition(":")
    if not sep:
        return None
    path, sep, line_text = left.rpartition(":")
    if not sep:
        return None
    line = _parse_u32(line_text)
    column = _parse_u32(column_text)
    if line is None or column is None or line == 0 or column == 0:
        return None
    return FilePosition(path=path, line=line, column=column)


def resolve_path(root_dir: str | os.PathLike[str], path: str) -> Path:
    """Turn a repository-relative or absolute path into an absolute one."""
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return Path(root_dir).joinpath(*path.split("/"))


def _repo_relative(root: Path, target: Path) -> str | None:
    try:
        return target.relative_to(root).as_posix()
    except ValueError:
        return None


def normalize_path(root_dir: str | os.PathLike[str], abs_path: str | os.PathLike[str]) -> str:
    """Return the path relative to the repository root, or the path as given when outside it."""
    original = Path(abs_path)
    try:
        canon = original.resolve(strict=True)
    except (OSError, RuntimeError):
        canon = original
    root = Path(root_dir)
    roots = [root]
    try:
        resolved_root = root.resolve()
    except (OSError, RuntimeError):
        resolved_root = root
    if resolved_root != root:
        roots.append(resolved_root)
    for candidate_root in roots:
        relative = _repo_relative(candidate_root, canon)
        if relative is not None:
            return relative
    return str(original)