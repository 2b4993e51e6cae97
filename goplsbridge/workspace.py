"""Locating the Go workspace or module that a file belongs to."""

from __future__ import annotations

import os
from pathlib import Path


class GoWorkspaceResolver:
    """Find the directory gopls should run in for a given file."""

    def __init__(self, root_dir: str | os.PathLike[str]) -> None:
        self.root_dir = Path(root_dir)
        self.has_go_work = (self.root_dir / "go.work").exists()
        self._cache: dict[Path, Path] = {}

    def workspace_for_file(self, abs_file: str | os.PathLike[str]) -> Path:
        """Return the nearest directory holding go.mod, or the root."""
        abs_file = Path(abs_file)
        if self.has_go_work or not abs_file.is_relative_to(self.root_dir):
            return self.root_dir

        directory = abs_file.parent if abs_file.parent != abs_file else self.root_dir
        cached = self._cache.get(directory)
        if cached is not None:
            return cached

        current = directory
        while current.is_relative_to(self.root_dir):
            if (current / "go.mod").exists():
                self._cache[directory] = current
                return current
            if current == self.root_dir or current.parent == current:
                break
            current = current.parent

        self._cache[directory] = self.root_dir
        return self.root_dir

    def workspace_root_default(self) -> Path:
        """The directory used when no particular file is involved."""
        return self.root_dir