"""Scanner building the snapshot of eligible source files."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from loguru import logger

from treemirror.models import ScanSnapshot
from treemirror.sync.filters import PathFilter


@dataclass
class DirectoryListing:
    """Outcome of listing a single directory."""

    directory: Path
    files: List[Path] = field(default_factory=list)
    subdirectories: List[Path] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DirectoryScanner:
    """
    Walks a source tree depth-first and collects the files to mirror.
    Directories that can't be read are skipped without stopping the walk.
    """

    def __init__(self, path_filter: PathFilter, verbose: bool = False):
        self.path_filter = path_filter
        self.verbose = verbose

    def list_directory(self, directory: Path) -> DirectoryListing:
        """
        List the eligible files and the subdirectories to visit.

        Args:
            directory: Directory to list

        Returns:
            DirectoryListing, with error set if the directory couldn't be read
        """
        listing = DirectoryListing(directory=directory)
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    # directory links are not followed to avoid cycles
                    if entry.is_dir(follow_symlinks=False):
                        if self.path_filter.accepts_directory(entry.name):
                            listing.subdirectories.append(Path(entry.path))
                    elif entry.is_file():
                        try:
                            size = entry.stat().st_size
                        except OSError as e:
                            logger.debug(f"Skipping file {entry.path}: {e}")
                            continue
                        if self.path_filter.accepts_file(entry.name, size):
                            listing.files.append(Path(entry.path))
        except OSError as e:
            # permission denied, name too long or directory removed mid-walk
            return DirectoryListing(directory=directory, error=str(e))
        return listing

    def scan(self, root: Path) -> ScanSnapshot:
        """
        Scan a source tree.

        Args:
            root: Source directory, it is never filtered out itself

        Returns:
            ScanSnapshot mapping each directory with eligible files to its files
        """
        logger.debug(f"Scanning directory: {root}")
        directories: List[Tuple[Path, List[Path]]] = []
        errors: Dict[Path, str] = {}

        stack = [root]
        while stack:
            listing = self.list_directory(stack.pop())
            if not listing.ok:
                errors[listing.directory] = listing.error
                if self.verbose:
                    logger.warning(f"Skipping {listing.directory}: {listing.error}")
                continue

            if listing.files:
                directories.append((listing.directory, listing.files))
            # reversed so that subdirectories are visited in listing order
            stack.extend(reversed(listing.subdirectories))

        snapshot = ScanSnapshot.build(directories, errors)
        logger.debug(
            f"Found {snapshot.total_files} files in {len(snapshot)} directories"
        )
        if errors:
            logger.debug(f"Skipped {len(errors)} directories due to errors")
        return snapshot
