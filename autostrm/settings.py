from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from autostrm.models.entities import DuplicateHandling, OrganizerConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    base_strm_path: str = "/media/strm"
    enable_logging: bool = True  # per-file "Creating STRM file" lines
    enable_parent_folders: bool = True
    file_name_pattern: str = "{name}"
    enable_media_type_detection: bool = True
    organize_by_media_type: bool = True
    duplicate_handling: DuplicateHandling = DuplicateHandling.OVERWRITE

    # Directory auto-split; listings get slow well before ~500 entries
    enable_auto_split: bool = True
    max_entries_per_directory: int = 400

    jellyfin_host: str = "127.0.0.1"
    jellyfin_port: int = 8096
    jellyfin_api_key: str = ""
    jellyfin_refresh_after_webhook: bool = False

    @field_validator("file_name_pattern")
    @classmethod
    def _pattern_has_name(cls, v: str) -> str:
        if "{name}" not in v:
            raise ValueError("file_name_pattern must contain a {name} placeholder")
        return v

    @field_validator("max_entries_per_directory")
    @classmethod
    def _positive_threshold(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_entries_per_directory must be at least 1")
        return v

    def snapshot(self) -> OrganizerConfig:
        return OrganizerConfig(
            base_path=Path(self.base_strm_path),
            enable_media_type_detection=self.enable_media_type_detection,
            organize_by_media_type=self.organize_by_media_type,
            enable_parent_folders=self.enable_parent_folders,
            file_name_pattern=self.file_name_pattern,
            duplicate_handling=self.duplicate_handling,
            enable_auto_split=self.enable_auto_split,
            max_entries_per_directory=self.max_entries_per_directory,
            enable_logging=self.enable_logging,
        )


settings = Settings()
