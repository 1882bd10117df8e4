"""Thread-safe statistics for a mirror run."""

import threading
import time
from collections import Counter
from dataclasses import replace
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from loguru import logger

from treemirror.models import ExtensionStat, OperationKind, OperationRecord, RunStatistics
from treemirror.sync.filters import extension_key

TOP_EXTENSIONS = 5


class StatisticsAggregator:
    """Collects operation counts, copied bytes and per-extension totals.

    Every update goes through a single lock, so worker threads can record
    concurrently. The timer starts when the aggregator is created.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._started = time.perf_counter()
        self._stopped: Optional[float] = None
        self._bytes = 0
        self._operations: Counter = Counter()
        self._extensions: Dict[str, ExtensionStat] = {}

    def record(self, record: OperationRecord) -> None:
        """Add a processed file to the statistics."""
        size = 0
        if record.kind in (OperationKind.ADD, OperationKind.UPDATE):
            try:
                size = record.path.stat().st_size
            except OSError as e:
                logger.debug(f"Can't read size of {record.path}: {e}")

        with self._lock:
            self._operations[record.kind] += 1
            if record.kind in (OperationKind.ADD, OperationKind.UPDATE):
                self._bytes += size
                stat = self._extensions.setdefault(extension_key(record.path.name), ExtensionStat())
                stat.count += 1
                stat.bytes += size

    def record_path(self, path: Path, kind: OperationKind) -> None:
        self.record(OperationRecord(path=path, kind=kind))

    def stop(self) -> None:
        """Stop the timer, later calls have no effect."""
        with self._lock:
            if self._stopped is None:
                self._stopped = time.perf_counter()

    @property
    def stopped(self) -> bool:
        return self._stopped is not None

    def elapsed(self) -> timedelta:
        """Elapsed time, live until the timer is stopped."""
        end = self._stopped if self._stopped is not None else time.perf_counter()
        return timedelta(seconds=end - self._started)

    @property
    def total_bytes(self) -> int:
        with self._lock:
            return self._bytes

    def count(self, kind: OperationKind) -> int:
        with self._lock:
            return self._operations[kind]

    def finalize(self, scanned_directories: int = 0, scanned_files: int = 0) -> RunStatistics:
        """Stop the timer and build the final report."""
        self.stop()
        with self._lock:
            extensions = [(key, replace(stat)) for key, stat in self._extensions.items()]
            operations = {kind: self._operations[kind] for kind in OperationKind}
            total_bytes = self._bytes

        return RunStatistics(
            elapsed=self.elapsed(),
            total_bytes=total_bytes,
            operations=operations,
            top_by_count=top_extensions(extensions, by="count"),
            top_by_bytes=top_extensions(extensions, by="bytes"),
            scanned_directories=scanned_directories,
            scanned_files=scanned_files,
        )


def top_extensions(
    extensions: List[Tuple[str, ExtensionStat]], by: str, limit: int = TOP_EXTENSIONS
) -> List[Tuple[str, ExtensionStat]]:
    """Highest ranked extensions, ties keep their insertion order."""
    return sorted(extensions, key=lambda item: getattr(item[1], by), reverse=True)[:limit]
