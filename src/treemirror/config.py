"""Configuration management for treemirror."""

import os
from pathlib import Path
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from treemirror.models import ExtensionPreset

LOG_FILE_NAME = "treemirror.log"

# 100 MB
DEFAULT_MAX_SIZE = 104_857_600

MIN_MAX_SIZE = 100

# Characters that can never appear in a file extension
INVALID_EXTENSION_CHARS = frozenset('<>:"/\\|?*\0')


class AppSettings(BaseSettings):
    """Application-wide settings, read from the environment or a .env file."""

    # Default to ~/.treemirror but allow override with env var
    home: Path = Field(
        default_factory=lambda: Path.home() / ".treemirror",
        description="Base path for treemirror logs",
    )

    log_level: str = Field(default="INFO", description="Level of the file log sink")

    threads: int = Field(
        default=0,
        ge=0,
        description="Default worker count, 0 means hardware parallelism",
    )

    max_size: int = Field(
        default=DEFAULT_MAX_SIZE,
        gt=MIN_MAX_SIZE,
        description="Default maximum size in bytes of a file to copy",
    )

    model_config = SettingsConfigDict(
        env_prefix="TREEMIRROR_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def log_file(self) -> Path:
        """Get log file path."""
        return self.home / LOG_FILE_NAME


def normalize_extensions(value) -> FrozenSet[str]:
    """Normalize an extension list given as a comma-separated string or an iterable.

    Extensions are lower-cased and stored without their leading dot, so
    ".TXT", "txt" and "Txt" all end up as "txt".
    """
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = value.split(",")

    extensions = set()
    for item in value:
        extension = str(item).strip().lstrip(".").lower()
        if not extension:
            continue
        if any(c in INVALID_EXTENSION_CHARS for c in extension):
            raise ValueError(f"'{item}' is not a valid file extension")
        extensions.add(extension)
    return frozenset(extensions)


class SyncConfig(BaseModel):
    """Validated configuration of a single mirror run.

    Everything the engine relies on is checked here, so the engine itself
    never has to raise configuration errors.
    """

    model_config = ConfigDict(frozen=True)

    source: Path
    target: Path
    include: FrozenSet[str] = frozenset()
    exclude: FrozenSet[str] = frozenset()
    excluded_directories: FrozenSet[str] = frozenset()
    preset: Optional[ExtensionPreset] = None
    max_size: int = Field(default=DEFAULT_MAX_SIZE)
    threads: int = Field(default=0, ge=0)
    verbose: bool = False

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def parse_extensions(cls, v) -> FrozenSet[str]:
        return normalize_extensions(v)

    @field_validator("excluded_directories", mode="before")
    @classmethod
    def parse_directories(cls, v) -> FrozenSet[str]:
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = v.split(",")
        return frozenset(name.strip() for name in v if name.strip())

    @field_validator("source", "target")
    @classmethod
    def ensure_directory_exists(cls, v: Path) -> Path:
        """Ensure the path points to an existing directory and make it absolute."""
        v = v.expanduser()
        if not v.exists():
            raise ValueError(f"The directory {v} doesn't exist")
        if not v.is_dir():
            raise ValueError(f"{v} is not a directory")
        return v.resolve()

    @field_validator("max_size")
    @classmethod
    def check_max_size(cls, v: int) -> int:
        if v <= MIN_MAX_SIZE:
            raise ValueError(f"The maximum size must be greater than {MIN_MAX_SIZE} bytes")
        return v

    @model_validator(mode="after")
    def check_filter_modes(self) -> "SyncConfig":
        if self.include and self.exclude:
            raise ValueError(
                "The list of extensions to exclude must be empty when "
                "other extensions to look for are specified"
            )
        if self.preset is not None and (self.include or self.exclude):
            raise ValueError("The preset option cannot be used with --include or --exclude")
        return self

    @model_validator(mode="after")
    def check_target_outside_source(self) -> "SyncConfig":
        if self.target == self.source or self.source in self.target.parents:
            raise ValueError("The target directory can't be inside the source directory")
        if self.mirror_root == self.source:
            raise ValueError("The target directory can't be the parent of the source directory")
        if self.mirror_root in self.source.parents:
            raise ValueError(
                f"The source directory can't be inside the mirror folder {self.mirror_root}"
            )
        return self

    @property
    def inclusions(self) -> FrozenSet[str]:
        """Effective inclusion set, after expanding the preset."""
        if self.preset is not None:
            return frozenset(self.preset.inclusions)
        return self.include

    @property
    def exclusions(self) -> FrozenSet[str]:
        """Effective exclusion set, after expanding the preset."""
        if self.preset is not None:
            return frozenset(self.preset.exclusions)
        return self.exclude

    @property
    def directory_exclusions(self) -> FrozenSet[str]:
        if self.preset is not None:
            return self.excluded_directories | frozenset(self.preset.excluded_directories)
        return self.excluded_directories

    @property
    def worker_count(self) -> int:
        """Number of worker threads, clamped to the available hardware parallelism."""
        available = os.cpu_count() or 1
        if self.threads == 0:
            return available
        return min(self.threads, available)

    @property
    def mirror_root(self) -> Path:
        """Top-level target folder, named after the source folder."""
        return self.target / self.source.name
