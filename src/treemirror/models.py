"""Core data types shared by the mirror engine.

The engine passes these values between its stages:

1. The scanner builds a ScanSnapshot of the eligible source files
2. The applier and the reconciler emit one OperationRecord per processed file
3. The statistics aggregator folds those records into ExtensionStat entries
   and finally freezes everything into a RunStatistics report
"""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

# Key used for files without an extension
NO_EXTENSION = "{none}"


class OperationKind(str, Enum):
    """Classification recorded for each processed file."""

    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"
    FAILURE = "failure"


class ExtensionPreset(str, Enum):
    """Named shorthands for common groups of file types.

    The classic presets expand to an inclusion list. The special presets
    (vs, uwp) expand to an exclusion list plus a set of directory names
    to skip, which suits source code checkouts.
    """

    DOCUMENTS = "documents"
    IMAGES = "images"
    MUSIC = "music"
    VIDEOS = "videos"
    CODE = "code"
    VS = "vs"
    UWP = "uwp"

    @property
    def inclusions(self) -> Tuple[str, ...]:
        return _PRESET_INCLUSIONS.get(self, ())

    @property
    def exclusions(self) -> Tuple[str, ...]:
        return _PRESET_EXPANSIONS.get(self, ((), ()))[0]

    @property
    def excluded_directories(self) -> Tuple[str, ...]:
        return _PRESET_EXPANSIONS.get(self, ((), ()))[1]


_PRESET_INCLUSIONS = {
    ExtensionPreset.DOCUMENTS: (
        "doc", "docx", "txt", "rtf", "tex", "csv", "pps", "ppsx",
        "ppt", "pptx", "xls", "xlsx", "xlr", "odt", "pdf",
    ),
    ExtensionPreset.IMAGES: (
        "ai", "bmp", "gif", "ico", "jpeg", "jpg", "png", "ps", "psd",
        "svg", "tif", "tiff", "tga", "yuv",
    ),
    ExtensionPreset.MUSIC: (
        "aif", "cda", "mid", "midi", "mp3", "mpa", "ogg", "wav", "wma",
        "wpl", "flac", "iff", "m3u", "m4a",
    ),
    ExtensionPreset.VIDEOS: (
        "3g2", "3gp", "avi", "flv", "h264", "m4v", "mkv", "mov", "mp4",
        "mpg", "mpeg", "rm", "swf", "vob", "wmv", "asf", "srt",
    ),
    ExtensionPreset.CODE: (
        "c", "class", "cpp", "cc", "cu", "cs", "h", "java", "sh", "swift",
        "vb", "rb", "asp", "aspx", "css", "htm", "html", "js", "jsp", "php",
        "xml", "xaml", "lua", "m", "pl", "py", "pyc",
    ),
}

# preset -> (excluded extensions, excluded directory names)
_PRESET_EXPANSIONS = {
    ExtensionPreset.VS: (
        ("user", "suo"),
        (".git", ".vs", "bin", "obj"),
    ),
    ExtensionPreset.UWP: (
        ("user", "suo", "pfx"),
        (".git", ".vs", "bin", "obj", "Builds", "BundleArtifacts"),
    ),
}


@dataclass(frozen=True)
class ScanSnapshot:
    """Immutable result of one directory scan.

    Attributes:
        directories: source directory -> eligible files, in walk order
        errors: directories skipped during the walk -> error message
    """

    directories: Mapping[Path, Tuple[Path, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    errors: Mapping[Path, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(
        cls,
        directories: Sequence[Tuple[Path, Sequence[Path]]],
        errors: Optional[Dict[Path, str]] = None,
    ) -> "ScanSnapshot":
        return cls(
            directories=MappingProxyType({d: tuple(files) for d, files in directories}),
            errors=MappingProxyType(dict(errors or {})),
        )

    def __iter__(self) -> Iterator[Tuple[Path, Tuple[Path, ...]]]:
        return iter(self.directories.items())

    def __len__(self) -> int:
        return len(self.directories)

    def __contains__(self, directory: object) -> bool:
        return directory in self.directories

    @property
    def total_files(self) -> int:
        return sum(len(files) for files in self.directories.values())

    def file_names(self, directory: Path) -> Optional[frozenset]:
        """Names of the eligible files in a directory, or None if it was not scanned."""
        files = self.directories.get(directory)
        if files is None:
            return None
        return frozenset(f.name for f in files)


@dataclass(frozen=True)
class OperationRecord:
    """A single processed target file."""

    path: Path
    kind: OperationKind
    error: Optional[str] = None


@dataclass
class ExtensionStat:
    """Running totals for one file extension."""

    count: int = 0
    bytes: int = 0


@dataclass(frozen=True)
class RunStatistics:
    """Final report of a mirror run."""

    elapsed: timedelta
    total_bytes: int
    operations: Mapping[OperationKind, int]
    top_by_count: List[Tuple[str, ExtensionStat]]
    top_by_bytes: List[Tuple[str, ExtensionStat]]
    scanned_directories: int = 0
    scanned_files: int = 0

    def count(self, kind: OperationKind) -> int:
        return self.operations.get(kind, 0)

    @property
    def copied_files(self) -> int:
        """Files written to the target, both new and updated."""
        return self.count(OperationKind.ADD) + self.count(OperationKind.UPDATE)

    @property
    def total_changes(self) -> int:
        return self.copied_files + self.count(OperationKind.REMOVE)
