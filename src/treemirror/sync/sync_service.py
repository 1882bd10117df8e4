"""Service running a complete mirror pass."""

from typing import Optional

from loguru import logger

from treemirror.config import SyncConfig
from treemirror.models import OperationKind, RunStatistics, ScanSnapshot
from treemirror.sync.applier import ParallelApplier, ProgressSink
from treemirror.sync.cleanup import CleanupReconciler
from treemirror.sync.filters import PathFilter
from treemirror.sync.scanner import DirectoryScanner
from treemirror.sync.statistics import StatisticsAggregator


class SyncService:
    """Mirrors a source tree into a target directory.

    One instance per run: the service owns the statistics of that run and
    keeps no state beyond it.
    """

    def __init__(self, config: SyncConfig):
        self.config = config
        self.stats = StatisticsAggregator()
        self.scanner = DirectoryScanner(PathFilter.from_config(config), verbose=config.verbose)
        self.applier = ParallelApplier(self.stats, workers=config.worker_count)
        self.reconciler = CleanupReconciler(self.stats)

    def scan(self) -> ScanSnapshot:
        return self.scanner.scan(self.config.source)

    def sync(self, progress: Optional[ProgressSink] = None) -> RunStatistics:
        """
        Run scan, copy and cleanup in order.

        Args:
            progress: Optional sink for the fraction of processed files

        Returns:
            RunStatistics of the run
        """
        config = self.config
        logger.info(f"Mirroring {config.source} -> {config.mirror_root}")

        snapshot = self.scan()
        logger.info(
            f"Found {snapshot.total_files} files to check in {len(snapshot)} directories"
        )

        self.applier.apply(snapshot, config.source, config.target, progress)
        self.reconciler.cleanup(snapshot, config.source, config.target)

        report = self.stats.finalize(
            scanned_directories=len(snapshot), scanned_files=snapshot.total_files
        )
        logger.info(
            f"Sync finished in {report.elapsed}: "
            f"{report.count(OperationKind.ADD)} added, "
            f"{report.count(OperationKind.UPDATE)} updated, "
            f"{report.count(OperationKind.REMOVE)} removed, "
            f"{report.count(OperationKind.FAILURE)} failed"
        )
        return report
