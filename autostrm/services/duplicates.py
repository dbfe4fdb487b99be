from __future__ import annotations

from pathlib import Path

from autostrm.models.entities import DuplicateHandling
from autostrm.services.filesystem import LocalFilesystem

MAX_VERSIONS = 10_000


def resolve_duplicate(
    directory: Path,
    file_name: str,
    policy: DuplicateHandling,
    fs: LocalFilesystem | None = None,
) -> str | None:
    """Return the file name to write into ``directory``, or None to skip.

    Overwrite keeps the name, Skip gives up on an existing file, and
    CreateVersions probes ``name_1.ext``, ``name_2.ext``... for a free slot.
    """
    fs = fs or LocalFilesystem()
    directory = Path(directory)
    if not fs.exists(directory / file_name):
        return file_name

    policy = DuplicateHandling(policy)
    if policy is DuplicateHandling.OVERWRITE:
        return file_name
    if policy is DuplicateHandling.SKIP:
        return None

    stem, ext = Path(file_name).stem, Path(file_name).suffix
    for n in range(1, MAX_VERSIONS + 1):
        candidate = f"{stem}_{n}{ext}"
        if not fs.exists(directory / candidate):
            return candidate
    raise FileExistsError(f"no free version slot for {file_name} in {directory}")
