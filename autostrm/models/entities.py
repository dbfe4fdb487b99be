from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class DuplicateHandling(str, Enum):
    OVERWRITE = "Overwrite"
    SKIP = "Skip"
    CREATE_VERSIONS = "CreateVersions"


class MediaType(str, Enum):
    MOVIE = "movie"
    TV_SERIES = "tv_series"


class MediaItem(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = ""
    name: str = ""
    parent_id: int = Field(default=0, ge=0, alias="parent")


class WebhookData(BaseModel):
    code: int = 0
    msg: str = ""
    data: list[MediaItem] = []


class ValidateFilenameReq(BaseModel):
    filename: str = ""


@dataclass(frozen=True)
class NormalizedName:
    display_name: str
    year: Optional[int] = None
    is_english_likely: bool = True


@dataclass(frozen=True)
class MovieInfo:
    title: str
    year: Optional[int] = None

    @property
    def media_type(self) -> MediaType:
        return MediaType.MOVIE


@dataclass(frozen=True)
class SeriesInfo:
    series_name: str
    season: Optional[int] = None
    episode: Optional[int] = None

    @property
    def media_type(self) -> MediaType:
        return MediaType.TV_SERIES


Classification = Union[MovieInfo, SeriesInfo]


@dataclass(frozen=True)
class LayoutPlan:
    """Target directory for one item plus the file name to write.

    ``file_name`` is None when duplicate handling decided to skip the item.
    """

    directory: Path
    file_name: Optional[str]

    @property
    def skipped(self) -> bool:
        return self.file_name is None

    @property
    def file_path(self) -> Optional[Path]:
        if self.file_name is None:
            return None
        return self.directory / self.file_name

    def with_file_name(self, file_name: Optional[str]) -> "LayoutPlan":
        return replace(self, file_name=file_name)


@dataclass(frozen=True)
class OrganizerConfig:
    base_path: Path
    enable_media_type_detection: bool = True
    organize_by_media_type: bool = True
    enable_parent_folders: bool = True
    file_name_pattern: str = "{name}"
    duplicate_handling: DuplicateHandling = DuplicateHandling.OVERWRITE
    enable_auto_split: bool = True
    max_entries_per_directory: int = 400
    enable_logging: bool = True

    def __post_init__(self) -> None:
        if "{name}" not in self.file_name_pattern:
            raise ValueError("file_name_pattern must contain a {name} placeholder")
        if self.max_entries_per_directory < 1:
            raise ValueError("max_entries_per_directory must be at least 1")
        object.__setattr__(self, "base_path", Path(self.base_path))
        object.__setattr__(self, "duplicate_handling", DuplicateHandling(self.duplicate_handling))


@dataclass
class FilenameValidation:
    original_filename: str = ""
    is_valid: bool = True
    issues: list[str] = field(default_factory=list)
    suggested_filename: str = ""
