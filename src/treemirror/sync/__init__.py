from .filters import PathFilter
from .scanner import DirectoryScanner
from .planner import SyncPlanner
from .applier import ParallelApplier
from .cleanup import CleanupReconciler
from .statistics import StatisticsAggregator
from .sync_service import SyncService

__all__ = [
    "PathFilter",
    "DirectoryScanner",
    "SyncPlanner",
    "ParallelApplier",
    "CleanupReconciler",
    "StatisticsAggregator",
    "SyncService",
]
