"""Eligibility rules for files and directories."""

import os
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from treemirror.config import SyncConfig
from treemirror.models import NO_EXTENSION


def get_extension(name: str) -> str:
    """Lower-cased extension of a file name, without the leading dot.

    Returns an empty string for files without an extension.
    """
    return os.path.splitext(os.path.basename(name))[1].lstrip(".").lower()


def extension_key(name: str) -> str:
    """Key used to group files by extension in the statistics."""
    return get_extension(name) or NO_EXTENSION


@dataclass(frozen=True)
class PathFilter:
    """Decides which files and directories take part in a mirror run.

    Works on names only, so it can be used without touching the filesystem.

    Inclusion and exclusion are two separate modes: when inclusions are
    given only those extensions pass and exclusions are ignored.
    """

    inclusions: FrozenSet[str] = frozenset()
    exclusions: FrozenSet[str] = frozenset()
    excluded_directories: FrozenSet[str] = frozenset()
    max_size: Optional[int] = None

    @classmethod
    def create(
        cls,
        inclusions: Iterable[str] = (),
        exclusions: Iterable[str] = (),
        excluded_directories: Iterable[str] = (),
        max_size: Optional[int] = None,
    ) -> "PathFilter":
        """Build a filter, normalizing extensions to lower case without dots."""
        return cls(
            inclusions=frozenset(e.lstrip(".").lower() for e in inclusions),
            exclusions=frozenset(e.lstrip(".").lower() for e in exclusions),
            excluded_directories=frozenset(excluded_directories),
            max_size=max_size,
        )

    @classmethod
    def from_config(cls, config: SyncConfig) -> "PathFilter":
        return cls.create(
            inclusions=config.inclusions,
            exclusions=config.exclusions,
            excluded_directories=config.directory_exclusions,
            max_size=config.max_size,
        )

    def accepts_extension(self, extension: str) -> bool:
        extension = extension.lstrip(".").lower()
        if self.inclusions:
            return extension in self.inclusions
        return extension not in self.exclusions

    def accepts_file(self, name: str, size: Optional[int] = None) -> bool:
        """Check a file name, and its size when known."""
        if size is not None and self.max_size is not None and size > self.max_size:
            return False
        return self.accepts_extension(get_extension(name))

    def accepts_directory(self, name: str) -> bool:
        """Directory exclusion matches the exact directory name at any depth."""
        return os.path.basename(os.path.normpath(name)) not in self.excluded_directories
