from __future__ import annotations

import logging
from typing import Iterable

from autostrm.models.entities import MediaItem, OrganizerConfig
from autostrm.services.census import DirectoryCensus
from autostrm.services.classifier import classify
from autostrm.services.duplicates import resolve_duplicate
from autostrm.services.errors import PathEscapeError
from autostrm.services.filesystem import DirectoryLocks, LocalFilesystem, directory_locks
from autostrm.services.layout import plan_layout
from autostrm.services.normalizer import normalize

logger = logging.getLogger(__name__)


def organize_item(
    item: MediaItem,
    config: OrganizerConfig,
    census: DirectoryCensus,
    fs: LocalFilesystem,
) -> dict:
    if not item.url.strip():
        raise ValueError("media item has an empty url")

    normalized = normalize(item.name)
    classification = classify(item.name) if config.enable_media_type_detection else None
    media_type = classification.media_type.value if classification is not None else None

    plan = plan_layout(item, classification, normalized, config, census)
    fs.create_directory_if_absent(plan.directory)
    plan = plan.with_file_name(
        resolve_duplicate(plan.directory, plan.file_name, config.duplicate_handling, fs)
    )

    fields = {"item_name": item.name, "media_type": media_type, "target_path": str(plan.directory)}
    if plan.skipped:
        logger.info("Skipping existing STRM file for %s in %s", item.name, plan.directory, extra=fields)
        return {"name": item.name, "status": "skipped", "media_type": media_type, "path": None}

    target = plan.file_path
    overwritten = fs.exists(target)
    fields["target_path"] = str(target)
    if config.enable_logging:
        logger.info("Creating STRM file: %s -> %s", target, item.url, extra=fields)

    fs.write_text(target, item.url)
    census.record_write(plan.directory)

    return {
        "name": item.name,
        "status": "overwritten" if overwritten else "created",
        "media_type": media_type,
        "path": str(target),
    }


def organize_batch(
    items: Iterable[MediaItem],
    config: OrganizerConfig,
    fs: LocalFilesystem | None = None,
    locks: DirectoryLocks | None = None,
) -> dict:
    fs = fs or LocalFilesystem()
    locks = locks or directory_locks
    census = DirectoryCensus(fs)

    results: list[dict] = []
    counts = {"created": 0, "overwritten": 0, "skipped": 0, "failed": 0}

    # Census, directory creation, duplicate probing and writes for one base tree
    # must not interleave with another batch.
    with locks.hold(config.base_path):
        for item in items:
            try:
                row = organize_item(item, config, census, fs)
            except PathEscapeError as exc:
                logger.error("Rejected %s: %s", item.name, exc, extra={"item_name": item.name})
                row = {"name": item.name, "status": "failed", "media_type": None, "path": None, "error": str(exc)}
            except Exception as exc:
                logger.exception("Failed to create STRM file for %s", item.name, extra={"item_name": item.name})
                row = {"name": item.name, "status": "failed", "media_type": None, "path": None, "error": str(exc)}
            counts[row["status"]] += 1
            results.append(row)

    logger.info(
        "Processed %d media items: %d created, %d overwritten, %d skipped, %d failed",
        len(results),
        counts["created"],
        counts["overwritten"],
        counts["skipped"],
        counts["failed"],
    )
    return {"ok": counts["failed"] == 0, "processed": len(results), **counts, "items": results}
