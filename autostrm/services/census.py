from __future__ import annotations

from pathlib import Path

from autostrm.services.filesystem import LocalFilesystem

STRM_SUFFIX = ".strm"


class DirectoryCensus:
    """Answers folder-existence and split-threshold questions for the planner.

    Counts are cached for the lifetime of one batch, keyed by resolved path.
    ``record_write`` must be called after every write so a cached count never
    goes stale.
    """

    def __init__(self, fs: LocalFilesystem | None = None) -> None:
        self.fs = fs or LocalFilesystem()
        self._counts: dict[Path, int] = {}

    def find_existing_folder(self, parent: Path, name: str) -> str | None:
        wanted = name.casefold()
        for entry in self.fs.list_directories(parent):
            if entry.casefold() == wanted:
                return entry
        return None

    def strm_count(self, path: Path) -> int:
        key = self.fs.canonicalize(path)
        if key not in self._counts:
            self._counts[key] = self.fs.count_entries(key, STRM_SUFFIX)
        return self._counts[key]

    def is_full(self, path: Path, threshold: int) -> bool:
        return self.strm_count(path) >= threshold

    def record_write(self, directory: Path) -> None:
        self._counts.pop(self.fs.canonicalize(directory), None)
