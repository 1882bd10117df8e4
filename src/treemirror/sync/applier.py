"""Parallel application of copy decisions."""

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional, Sequence

from loguru import logger

from treemirror import file_utils
from treemirror.models import OperationKind, OperationRecord, ScanSnapshot
from treemirror.sync.planner import SyncPlanner
from treemirror.sync.statistics import StatisticsAggregator

# Receives the fraction of processed files, in [0, 1]
ProgressSink = Callable[[float], None]


def mirror_path(path: Path, source_root: Path, target_root: Path) -> Path:
    """Map a path under source_root to its place in the mirror under target_root."""
    return target_root / source_root.name / path.relative_to(source_root)


def source_path(path: Path, source_root: Path, target_root: Path) -> Path:
    """Inverse of mirror_path."""
    return source_root / path.relative_to(target_root / source_root.name)


class ProgressTracker:
    """Counts processed files and forwards the fraction to a sink.

    Workers only hold the counter lock for the increment. The sink is fed by
    whichever worker wins the delivery lock, and a worker that loses simply
    moves on, so a slow sink never makes the pool wait. Fractions that fall
    behind the last delivered one are dropped, and finish() delivers the
    final value.
    """

    def __init__(self, total: int, sink: Optional[ProgressSink] = None):
        self.total = total
        self.sink = sink
        self.processed = 0
        self._delivered = 0.0
        self._lock = threading.Lock()
        self._sink_lock = threading.Lock()

    @property
    def fraction(self) -> float:
        if self.total == 0:
            return 1.0
        return self.processed / self.total

    def advance(self) -> None:
        with self._lock:
            self.processed += 1
        self._deliver(blocking=False)

    def finish(self) -> None:
        """Deliver the final fraction, 1.0 for runs without any file."""
        self._deliver(blocking=True)

    def _deliver(self, blocking: bool) -> None:
        if self.sink is None or not self._sink_lock.acquire(blocking=blocking):
            return
        try:
            while True:
                with self._lock:
                    fraction = self.fraction
                    if fraction <= self._delivered:
                        return
                    self._delivered = fraction
                self.sink(fraction)
        finally:
            self._sink_lock.release()


class ParallelApplier:
    """
    Copies new and updated files using a bounded pool of worker threads.
    Each source directory is one task; files inside a task are processed
    in order, tasks run in any order.
    """

    def __init__(
        self,
        stats: StatisticsAggregator,
        workers: int = 1,
        planner: Optional[SyncPlanner] = None,
    ):
        self.stats = stats
        self.workers = max(1, workers)
        self.planner = planner or SyncPlanner()

    def apply(
        self,
        snapshot: ScanSnapshot,
        source_root: Path,
        target_root: Path,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        """
        Mirror every file of the snapshot under target_root.

        Args:
            snapshot: Result of the source scan
            source_root: Root the snapshot was built from
            target_root: Directory that holds the mirror folder
            progress: Optional sink for the processed fraction
        """
        tracker = ProgressTracker(snapshot.total_files, progress)
        logger.debug(
            f"Applying {tracker.total} files in {len(snapshot)} directories "
            f"with {self.workers} workers"
        )

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = [
                executor.submit(
                    self.apply_directory,
                    mirror_path(directory, source_root, target_root),
                    files,
                    tracker,
                )
                for directory, files in snapshot
            ]
            for future in futures:
                future.result()

        tracker.finish()

    def apply_directory(
        self, target_directory: Path, files: Sequence[Path], tracker: ProgressTracker
    ) -> None:
        """Sync the files of one source directory into its mirrored directory."""
        try:
            file_utils.ensure_directory(target_directory)
        except file_utils.FileError as e:
            for source in files:
                self.stats.record(
                    OperationRecord(
                        path=target_directory / source.name,
                        kind=OperationKind.FAILURE,
                        error=str(e),
                    )
                )
                tracker.advance()
            return

        for source in files:
            record = self.planner.sync_file(source, target_directory / source.name)
            if record is not None:
                self.stats.record(record)
            tracker.advance()
