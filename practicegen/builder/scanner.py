#!/usr/bin/env python3
"""
Lists the solution files a practice is built from.
"""

import fnmatch
from pathlib import Path
from typing import Iterable, List, Optional

from ..config import DEFAULT_EXCLUDES

EXCLUDED_DIRS = {'__pycache__', '.godot', '.import'}


class FileTreeScanner:
    """Recursively lists files under a directory"""

    def __init__(self, excludes: Optional[Iterable[str]] = None):
        self.excludes = list(excludes) if excludes is not None else list(DEFAULT_EXCLUDES)

    def is_excluded(self, path: Path) -> bool:
        return any(fnmatch.fnmatch(path.name, pattern) for pattern in self.excludes)

    def scan(self, directory: Path, pattern: Optional[str] = None, recursive: bool = True) -> List[Path]:
        """
        List candidate files under a directory, sorted.

        Args:
            directory: Directory to walk
            pattern: Optional glob matched against the path relative to
                `directory` or against the file name
            recursive: Descend into sub-directories

        Returns:
            Sorted list of file paths
        """
        directory = Path(directory)
        if not directory.is_dir():
            return []

        entries = directory.rglob('*') if recursive else directory.iterdir()
        files = []
        for path in entries:
            if not path.is_file():
                continue
            relative = path.relative_to(directory)
            if any(part in EXCLUDED_DIRS for part in relative.parts[:-1]):
                continue
            if self.is_excluded(path):
                continue
            if pattern and not self._matches(relative, pattern):
                continue
            files.append(path)

        return sorted(files)

    def _matches(self, relative: Path, pattern: str) -> bool:
        return (
            fnmatch.fnmatch(relative.as_posix(), pattern)
            or fnmatch.fnmatch(relative.name, pattern)
        )
