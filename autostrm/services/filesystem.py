from __future__ import annotations

from contextlib import contextmanager
import os
from pathlib import Path
import tempfile
import threading
from typing import Callable, Iterator


class LocalFilesystem:
    def create_directory_if_absent(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def list_entries(self, path: Path, keep: Callable[[Path], bool] | None = None) -> list[str]:
        p = Path(path)
        if not p.is_dir():
            return []
        return sorted(e.name for e in p.iterdir() if keep is None or keep(e))

    def list_directories(self, path: Path) -> list[str]:
        return self.list_entries(path, lambda e: e.is_dir())

    def count_entries(self, path: Path, suffix: str) -> int:
        p = Path(path)
        if not p.is_dir():
            return 0
        suffix = suffix.lower()
        return sum(1 for e in p.iterdir() if e.is_file() and e.name.lower().endswith(suffix))

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def write_text(self, path: Path, content: str) -> None:
        # Temp file + rename so readers never see a half-written pointer file.
        target = Path(path)
        fd, tmp = tempfile.mkstemp(prefix=".", suffix=".tmp", dir=target.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp, target)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def canonicalize(self, path: Path) -> Path:
        return Path(path).resolve()


class DirectoryLocks:
    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def _get(self, path: Path) -> threading.Lock:
        key = str(Path(path).resolve())
        with self._lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, path: Path) -> Iterator[None]:
        lock = self._get(path)
        with lock:
            yield


directory_locks = DirectoryLocks()
