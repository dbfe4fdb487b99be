"""Filename normalization for STRM display names.

Turns a human-typed media filename into a clean display name: the extension
goes, alternate-language titles are reduced to the English-looking part,
release noise is stripped and the release year is re-appended as
``Name (YYYY)``.

This is a best-effort heuristic. The order of the steps matters: the year is
isolated before anything else touches the name, so the noise patterns never
see it.
"""
from __future__ import annotations

import logging
import re

from autostrm.models.entities import FilenameValidation, NormalizedName
from autostrm.services.sanitizer import (
    UNKNOWN_NAME,
    apply_display_table,
    has_invalid_chars,
)

logger = logging.getLogger(__name__)

VIDEO_EXTS = {
    ".mp4", ".avi", ".mkv", ".mov", ".wmv", ".flv", ".webm",
    ".m4v", ".3gp", ".mpg", ".mpeg", ".ts", ".m2ts",
}
# Extensions we strip without treating them as video (pointer files, subtitles, images).
OTHER_EXTS = {".strm", ".iso", ".rmvb", ".vob", ".srt", ".ass", ".nfo", ".txt"}

PAREN_YEAR_RE = re.compile(r"\((\d{4})\)")
BARE_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")

# Checked in this order; the first one present decides the split.
AKA_MARKERS = [
    re.compile(r"\(aka\)", re.IGNORECASE),
    re.compile(r" aka ", re.IGNORECASE),
    re.compile(r" - aka ", re.IGNORECASE),
    re.compile(r"\baka ", re.IGNORECASE),
]

NOISE_PATTERNS = [
    re.compile(r"\b(720p|1080p|2160p|4K|HD|CAM|TS|TC|DVDRip|BRRip|BluRay|WEB-DL|WEBRip|HDTV)\b", re.IGNORECASE),
    re.compile(r"\b(x264|x265|H\.264|H\.265|AVC|HEVC)\b", re.IGNORECASE),
    re.compile(r"\b(AAC|AC3|DTS|MP3|FLAC)\b", re.IGNORECASE),
    re.compile(r"\[(.*?)\]"),
    re.compile(r"\{(.*?)\}"),
]

_ENGLISH_PUNCT = set(" ()-.,:;!?'\"&_")
_WS_RE = re.compile(r"\s+")


def strip_extension(name: str) -> str:
    dot = name.rfind(".")
    if dot <= 0:
        return name
    if name[dot:].lower() in VIDEO_EXTS | OTHER_EXTS:
        return name[:dot]
    return name


def is_video_file(filename: str) -> bool:
    if not filename:
        return False
    dot = filename.rfind(".")
    return dot >= 0 and filename[dot:].lower() in VIDEO_EXTS


def extract_year(name: str) -> int | None:
    m = PAREN_YEAR_RE.search(name)
    if m:
        year = int(m.group(1))
        if 1900 <= year <= 2099:
            return year

    m = BARE_YEAR_RE.search(name)
    if m:
        year = int(m.group(0))
        if 1900 <= year <= 2099:
            return year
    return None


def remove_year(name: str, year: int | None) -> str:
    if not name or year is None:
        return name
    name = re.sub(re.escape(f"({year})"), "", name, flags=re.IGNORECASE)
    name = re.sub(rf"\b{year}\b", "", name)
    return name.strip()


def is_english(text: str) -> bool:
    if not text or not text.strip():
        return False

    letters = 0
    non_latin = 0
    for ch in text:
        if ch.isalpha():
            letters += 1
            if not ("a" <= ch <= "z" or "A" <= ch <= "Z"):
                non_latin += 1
        elif not (ch.isdigit() or ch in _ENGLISH_PUNCT):
            return False

    if letters and non_latin / letters > 0.2:
        return False
    return True


def _find_aka_marker(name: str) -> re.Pattern[str] | None:
    for marker in AKA_MARKERS:
        if marker.search(name):
            return marker
    return None


def _pick_aka_part(name: str, marker: re.Pattern[str], year: int | None) -> tuple[str, bool]:
    parts = [p for p in marker.split(name) if p]

    for part in parts:
        candidate = remove_year(part.strip(), year)
        if is_english(candidate) and len(candidate.replace(" ", "")) >= 3:
            return candidate.strip(), True

    for part in parts:
        if part.strip():
            logger.debug("no English alternate title in %r, using first part", name)
            return remove_year(part.strip(), year).strip(), False

    return remove_year(name, year), False


def _collapse(name: str) -> str:
    return _WS_RE.sub(" ", name).strip()


def strip_release_noise(name: str) -> str:
    for pat in NOISE_PATTERNS:
        name = pat.sub(" ", name)
    # Separators left dangling once a trailing tag is gone ("Show.S01E02. ").
    return _collapse(name).strip(" .-_")


def normalize(raw_name: str) -> NormalizedName:
    if not raw_name or not raw_name.strip():
        return NormalizedName(display_name=UNKNOWN_NAME, year=None, is_english_likely=False)

    base = strip_extension(raw_name.strip())
    if not base.strip():
        return NormalizedName(display_name=UNKNOWN_NAME, year=None, is_english_likely=False)

    year = extract_year(base)

    marker = _find_aka_marker(base)
    if marker is not None:
        clean, english = _pick_aka_part(base, marker, year)
    else:
        clean = remove_year(base, year)
        english = is_english(clean)

    clean = apply_display_table(clean)
    clean = _collapse(clean)
    clean = strip_release_noise(clean)

    if year is not None and str(year) not in clean:
        clean = f"{clean} ({year})".strip()

    if not clean or clean == "()":
        clean = _collapse(apply_display_table(base)) or UNKNOWN_NAME

    return NormalizedName(display_name=clean, year=year, is_english_likely=english)


def validate_filename(filename: str) -> FilenameValidation:
    out = FilenameValidation(original_filename=filename or "")
    if not filename or not filename.strip():
        out.is_valid = False
        out.issues.append("Filename is empty or whitespace")
        out.suggested_filename = UNKNOWN_NAME
        return out

    if not is_video_file(filename):
        out.issues.append("File does not appear to be a video file")

    if extract_year(filename) is None:
        out.issues.append("No year found in filename - consider adding (YYYY) for better organization")

    base = strip_extension(filename)
    if base and not is_english(base):
        out.issues.append("Filename contains non-English characters - may cause issues with some clients")

    if has_invalid_chars(filename):
        out.issues.append("Filename contains characters that may cause issues on some filesystems")

    out.is_valid = not out.issues
    out.suggested_filename = normalize(filename).display_name
    return out
