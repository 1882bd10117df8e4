"""Removal of stale files and empty directories from the mirror."""

import os
from pathlib import Path

from loguru import logger

from treemirror import file_utils
from treemirror.models import OperationKind, ScanSnapshot
from treemirror.sync.applier import source_path
from treemirror.sync.statistics import StatisticsAggregator


class CleanupReconciler:
    """
    Reconciles the mirror with the snapshot of the source.

    The target tree is walked bottom-up, so a directory is only checked for
    emptiness after its own stale files and subdirectories are gone.
    """

    def __init__(self, stats: StatisticsAggregator):
        self.stats = stats

    def cleanup(self, snapshot: ScanSnapshot, source_root: Path, target_root: Path) -> None:
        """
        Delete everything in the mirror that the snapshot doesn't account for.

        Args:
            snapshot: Result of the source scan
            source_root: Root the snapshot was built from
            target_root: Directory that holds the mirror folder
        """
        mirror_root = target_root / source_root.name
        if not mirror_root.is_dir():
            logger.debug(f"Nothing to clean up, {mirror_root} doesn't exist")
            return

        for dirpath, _, filenames in os.walk(mirror_root, topdown=False):
            directory = Path(dirpath)
            if directory == source_root or source_root in directory.parents:
                logger.warning(f"Not cleaning up inside the source tree: {directory}")
                continue
            expected = snapshot.file_names(source_path(directory, source_root, target_root))

            for name in filenames:
                if expected is not None and name in expected:
                    continue
                self.remove_stale_file(directory / name)

            if directory != mirror_root and file_utils.remove_empty_directory(directory):
                logger.debug(f"Removed empty directory: {directory}")

    def remove_stale_file(self, path: Path) -> None:
        try:
            file_utils.delete_file(path)
        except file_utils.FileDeleteError as e:
            # without elevated privileges a retry won't help
            logger.debug(f"Skipping stale file: {e}")
            return
        self.stats.record_path(path, OperationKind.REMOVE)
