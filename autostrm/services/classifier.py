"""Movie vs. TV series classification from a raw filename.

Each rule adds a fixed weight to either the movie or the TV score. Rules run
in list order and some look at the scores accumulated so far, so the order
is part of the behaviour.
"""
from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Callable

from autostrm.models.entities import Classification, MediaType, MovieInfo, SeriesInfo
from autostrm.services.normalizer import strip_extension

MOVIE = MediaType.MOVIE
TV = MediaType.TV_SERIES

DECISION_MARGIN = 10

SXXEXX_RE = re.compile(r"S(\d+)E(\d+)", re.IGNORECASE)
NXNN_RE = re.compile(r"(\d+)x(\d+)")
PAREN_YEAR_RE = re.compile(r"\((?:19|20)\d{2}\)")
BARE_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
QUALITY_RE = re.compile(r"\b(720p|1080p|4K|2160p|HDTV|BluRay|WEB-DL|WEBRip|DVDRip|BRRip)\b", re.IGNORECASE)
SEASON_RE = re.compile(r"Season\s*\d+", re.IGNORECASE)
EPISODE_RE = re.compile(r"Episode\s*\d+", re.IGNORECASE)
COMBINED_EP_RE = re.compile(r"\b\d{1,2}\d{2}\b")  # 101, 1205
PART_RE = re.compile(r"Part\s*\d+", re.IGNORECASE)
EDITION_RE = re.compile(r"\b(Director'?s?\s*Cut|Extended|Uncut|Remastered)\b", re.IGNORECASE)
SEQUEL_RE = re.compile(r"\b(II|III|IV|V|VI|VII|VIII|IX|X|\d+)\b")

TV_KEYWORDS = ["series", "season", "episode", "pilot", "finale"]
MOVIE_KEYWORDS = ["movie", "film", "cinema", "theatrical"]

SERIES_PATTERNS = [
    re.compile(r"^(.+?)\s*S(\d+)E(\d+)", re.IGNORECASE),
    re.compile(r"^(.+?)\s*(\d+)x(\d+)", re.IGNORECASE),
]
MOVIE_PAREN_RE = re.compile(r"^(.+?)\s*\((\d{4})\)")
MOVIE_BARE_RE = re.compile(r"^(.+?)\s+(19|20)\d{2}\b")


@dataclass
class Scores:
    movie: int = 0
    tv: int = 0

    def add(self, target: MediaType, weight: int) -> None:
        if target is MOVIE:
            self.movie += weight
        else:
            self.tv += weight


@dataclass(frozen=True)
class Rule:
    name: str
    target: MediaType
    weight: int
    # Returns how many times the rule fires; 0 means it does not apply.
    hits: Callable[[str, Scores], int]


def _once(pattern: re.Pattern[str]) -> Callable[[str, Scores], int]:
    return lambda name, _scores: 1 if pattern.search(name) else 0


def _word_re(word: str) -> re.Pattern[str]:
    # Keywords count as standalone words only, not as fragments of a dotted title.
    return re.compile(rf"(?<!\S){word}(?!\S)", re.IGNORECASE)


def _occurrences(word: str) -> Callable[[str, Scores], int]:
    pattern = _word_re(word)
    return lambda name, _scores: len(pattern.findall(name))


def _present(word: str) -> Callable[[str, Scores], int]:
    return _once(_word_re(word))


def _combined_episode(name: str, scores: Scores) -> int:
    if scores.movie >= 15:
        return 0
    return 1 if COMBINED_EP_RE.search(name) else 0


def _year_penalty(name: str, scores: Scores) -> int:
    if scores.movie >= 15 and scores.tv >= 15 and PAREN_YEAR_RE.search(name):
        return 1
    return 0


RULES: list[Rule] = [
    Rule("sxxexx", TV, 20, _once(SXXEXX_RE)),
    Rule("nxnn", TV, 20, _once(NXNN_RE)),
    Rule("paren_year", MOVIE, 20, _once(PAREN_YEAR_RE)),
    Rule("bare_year", MOVIE, 15, _once(BARE_YEAR_RE)),
    Rule("quality", MOVIE, 15, _once(QUALITY_RE)),
    Rule("season_no", TV, 15, _once(SEASON_RE)),
    Rule("episode_no", TV, 15, _once(EPISODE_RE)),
    Rule("combined_episode", TV, 10, _combined_episode),
    Rule("part_no", TV, 8, _once(PART_RE)),
    *[Rule(f"kw_{kw}", TV, 12, _occurrences(kw)) for kw in TV_KEYWORDS],
    Rule("kw_show", TV, 8, _present("show")),
    *[Rule(f"kw_{kw}", MOVIE, 12, _present(kw)) for kw in MOVIE_KEYWORDS],
    Rule("paren_year_penalty", TV, -10, _year_penalty),
    Rule("edition", MOVIE, 8, _once(EDITION_RE)),
    Rule("sequel", MOVIE, 3, _once(SEQUEL_RE)),
]


def score(raw_name: str) -> Scores:
    scores = Scores()
    for rule in RULES:
        n = rule.hits(raw_name, scores)
        if n:
            scores.add(rule.target, rule.weight * n)
    return scores


def decide(scores: Scores) -> MediaType:
    if abs(scores.movie - scores.tv) >= DECISION_MARGIN:
        return TV if scores.tv > scores.movie else MOVIE
    # Close call: a tie (0 == 0 included) is a movie, otherwise the higher score.
    if scores.tv == scores.movie:
        return MOVIE
    return TV if scores.tv > scores.movie else MOVIE


def detect_media_type(raw_name: str) -> MediaType:
    return decide(score(raw_name or ""))


def _tidy_title(title: str) -> str:
    t = re.sub(r"[._]+", " ", title)
    t = re.sub(r"\s+", " ", t)
    return t.strip(" -")


def extract_series_info(raw_name: str) -> SeriesInfo:
    for pat in SERIES_PATTERNS:
        m = pat.search(raw_name)
        if m:
            name = _tidy_title(m.group(1)) or strip_extension(raw_name).strip()
            return SeriesInfo(series_name=name, season=int(m.group(2)), episode=int(m.group(3)))
    return SeriesInfo(series_name=strip_extension(raw_name).strip())


def extract_movie_info(raw_name: str) -> MovieInfo:
    m = MOVIE_PAREN_RE.search(raw_name)
    if m:
        return MovieInfo(title=_tidy_title(m.group(1)) or m.group(1).strip(), year=int(m.group(2)))

    m = MOVIE_BARE_RE.search(raw_name)
    if m:
        year_m = BARE_YEAR_RE.search(raw_name)
        year = int(year_m.group(0)) if year_m else None
        return MovieInfo(title=_tidy_title(m.group(1)) or m.group(1).strip(), year=year)

    return MovieInfo(title=strip_extension(raw_name).strip())


def classify(raw_name: str) -> Classification:
    raw_name = raw_name or ""
    if detect_media_type(raw_name) is TV:
        return extract_series_info(raw_name)
    return extract_movie_info(raw_name)
