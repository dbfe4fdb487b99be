from __future__ import annotations

from hashlib import md5
import logging
from pathlib import Path
import re
import unicodedata
from typing import Callable

from autostrm.models.entities import (
    Classification,
    LayoutPlan,
    MediaItem,
    MovieInfo,
    NormalizedName,
    OrganizerConfig,
    SeriesInfo,
)
from autostrm.services.census import STRM_SUFFIX, DirectoryCensus
from autostrm.services.errors import PathEscapeError
from autostrm.services.sanitizer import contains_traversal, sanitize_segment

logger = logging.getLogger(__name__)

MOVIES_DIR = "Movies"
TV_DIR = "TV Shows"
NON_LETTER_BUCKET = "0-9"
ALPHA_BUCKETS = ["A-C", "D-F", "G-I", "J-L", "M-O", "P-R", "S-U", "V-X", "Y-Z"]
HASH_BUCKETS = 10
EPISODES_PER_RANGE = 100

_QUOTES = str.maketrans({
    "‘": "'", "’": "'", "‚": "'", "‛": "'", "′": "'",
    "“": '"', "”": '"', "„": '"', "‟": '"', "″": '"',
})


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    kept = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return unicodedata.normalize("NFC", kept)


def _title_word(word: str) -> str:
    # All-caps words are acronyms (CSI, NCIS); keep them.
    if len(word) > 1 and word.isupper():
        return word
    return word[:1].upper() + word[1:].lower()


def normalize_series_folder(name: str) -> str:
    x = (name or "").strip().translate(_QUOTES)
    x = re.sub(r"[._]", " ", x)
    x = re.sub(r"\s+", " ", x).strip()
    x = strip_accents(x)
    return " ".join(_title_word(w) for w in x.split(" ") if w)


def alpha_bucket(title: str) -> str:
    first = strip_accents((title or "").strip()[:1]).upper()
    if "A" <= first <= "Z" and len(first) == 1:
        return ALPHA_BUCKETS[(ord(first) - ord("A")) // 3]
    return NON_LETTER_BUCKET


def stable_bucket(key: str) -> int:
    # Process-independent, unlike hash().
    return int(md5(key.encode("utf-8")).hexdigest(), 16) % HASH_BUCKETS


def episode_range_folder(episode: int) -> str:
    start = ((max(episode, 1) - 1) // EPISODES_PER_RANGE) * EPISODES_PER_RANGE + 1
    end = start + EPISODES_PER_RANGE - 1
    return f"Episodes {start:03d}-{end:03d}"


def ensure_within_base(path: Path, base: Path, canonicalize: Callable[[Path], Path] | None = None) -> Path:
    canonicalize = canonicalize or (lambda p: Path(p).resolve())
    resolved = canonicalize(Path(path))
    base_resolved = canonicalize(Path(base))
    if resolved != base_resolved and not resolved.is_relative_to(base_resolved):
        raise PathEscapeError(f"{resolved} is outside of configured base path {base_resolved}")
    return resolved


def strm_file_name(normalized: NormalizedName, config: OrganizerConfig) -> str:
    rendered = config.file_name_pattern.replace("{name}", normalized.display_name)
    return f"{sanitize_segment(rendered.strip())}{STRM_SUFFIX}"


def _overflow(directory: Path, prefix: str, key: str, config: OrganizerConfig, census: DirectoryCensus) -> Path:
    # Placement depends on the current count, so a resend after the folder fills lands in the sub-bucket.
    if config.enable_auto_split and census.is_full(directory, config.max_entries_per_directory):
        return directory / f"{prefix}_{stable_bucket(key)}"
    return directory


def _movie_dir(root: Path, normalized: NormalizedName, config: OrganizerConfig, census: DirectoryCensus) -> Path:
    title = normalized.display_name
    bucket_dir = root / MOVIES_DIR / alpha_bucket(title)
    return _overflow(bucket_dir, "movie", title, config, census)


def _series_dir(
    root: Path,
    info: SeriesInfo,
    normalized: NormalizedName,
    config: OrganizerConfig,
    census: DirectoryCensus,
) -> Path:
    tv_root = root / TV_DIR
    folder = sanitize_segment(normalize_series_folder(info.series_name))
    existing = census.find_existing_folder(tv_root, folder)
    if existing and existing != folder:
        logger.debug("reusing series folder %r for %r", existing, folder)
    series_dir = tv_root / (existing or folder)

    if info.season is None:
        return _overflow(series_dir, "episode", normalized.display_name, config, census)

    season_dir = series_dir / f"Season {info.season:02d}"
    if not (config.enable_auto_split and census.is_full(season_dir, config.max_entries_per_directory)):
        return season_dir
    if info.episode is None:
        return season_dir / f"episode_{stable_bucket(normalized.display_name)}"
    return season_dir / episode_range_folder(info.episode)


def plan_layout(
    item: MediaItem,
    classification: Classification | None,
    normalized: NormalizedName,
    config: OrganizerConfig,
    census: DirectoryCensus,
) -> LayoutPlan:
    if contains_traversal(item.name):
        raise PathEscapeError(f"item name {item.name!r} contains a path traversal sequence")

    base = Path(config.base_path)
    target = base

    if config.organize_by_media_type and classification is not None:
        if isinstance(classification, MovieInfo):
            target = _movie_dir(base, normalized, config, census)
        else:
            target = _series_dir(base, classification, normalized, config, census)

    if config.enable_parent_folders and item.parent_id > 0:
        target = target / f"parent_{item.parent_id}"

    directory = ensure_within_base(target, base, census.fs.canonicalize)
    file_name = strm_file_name(normalized, config)
    ensure_within_base(directory / file_name, directory, census.fs.canonicalize)
    return LayoutPlan(directory=directory, file_name=file_name)
