"""Output directory created on first use."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO


class OutDir:
    """Directory for output files; created lazily with the first file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._created = False

    def create_file(self, filename: str) -> BinaryIO:
        """Create (or truncate) ``filename`` in the directory, opened for binary writing."""
        if not self._created:
            self.path.mkdir(exist_ok=True)
            self._created = True
        return open(self.path / filename, "wb")