"""Tests for the parallel applier."""

import shutil
import threading
from pathlib import Path

import pytest

from treemirror.models import OperationKind, ScanSnapshot
from treemirror.sync.applier import (
    ParallelApplier,
    ProgressTracker,
    mirror_path,
    source_path,
)
from treemirror.sync.filters import PathFilter
from treemirror.sync.scanner import DirectoryScanner
from treemirror.sync.statistics import StatisticsAggregator


def scan(root: Path) -> ScanSnapshot:
    return DirectoryScanner(PathFilter()).scan(root)


def test_mirror_path_round_trip(source_root, target_root):
    path = source_root / "a" / "b.txt"
    mirrored = mirror_path(path, source_root, target_root)

    assert mirrored == target_root / source_root.name / "a" / "b.txt"
    assert source_path(mirrored, source_root, target_root) == path
    assert mirror_path(source_root, source_root, target_root) == target_root / source_root.name


def test_apply_copies_tree(stats, sample_tree, target_root, mirror_root):
    ParallelApplier(stats, workers=4).apply(scan(sample_tree.root), sample_tree.root, target_root)

    assert (mirror_root / "readme.md").read_text() == "# readme"
    assert (mirror_root / "notes" / "todo.txt").read_text() == "buy milk"
    assert (mirror_root / "notes" / "archive" / "2019" / "old.txt").exists()
    assert stats.count(OperationKind.ADD) == 5


def test_apply_twice_is_idempotent(sample_tree, target_root):
    snapshot = scan(sample_tree.root)
    ParallelApplier(StatisticsAggregator(), workers=2).apply(snapshot, sample_tree.root, target_root)

    second = StatisticsAggregator()
    ParallelApplier(second, workers=2).apply(snapshot, sample_tree.root, target_root)
    assert second.count(OperationKind.ADD) == 0
    assert second.count(OperationKind.UPDATE) == 0
    assert second.total_bytes == 0


def test_apply_updates_newer_files(sample_tree, target_root, mirror_root, create_file, base_mtime):
    ParallelApplier(StatisticsAggregator()).apply(scan(sample_tree.root), sample_tree.root, target_root)
    create_file(sample_tree.notes, "buy milk and eggs", base_mtime + 10**9)

    stats = StatisticsAggregator()
    ParallelApplier(stats).apply(scan(sample_tree.root), sample_tree.root, target_root)

    assert stats.count(OperationKind.UPDATE) == 1
    assert stats.count(OperationKind.ADD) == 0
    assert (mirror_root / "notes" / "todo.txt").read_text() == "buy milk and eggs"


def test_progress_is_monotonic_and_complete(stats, sample_tree, target_root):
    fractions = []
    snapshot = scan(sample_tree.root)
    ParallelApplier(stats, workers=4).apply(
        snapshot, sample_tree.root, target_root, progress=fractions.append
    )

    assert 0 < len(fractions) <= snapshot.total_files
    assert fractions == sorted(fractions)
    assert fractions[-1] == 1.0


def test_progress_for_empty_snapshot(stats, source_root, target_root):
    fractions = []
    ParallelApplier(stats).apply(ScanSnapshot(), source_root, target_root, progress=fractions.append)
    assert fractions == [1.0]


def test_progress_tracker_is_thread_safe():
    fractions = []
    tracker = ProgressTracker(total=800, sink=fractions.append)

    def work():
        for _ in range(100):
            tracker.advance()

    threads = [threading.Thread(target=work) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    tracker.finish()

    assert tracker.processed == 800
    assert fractions == sorted(fractions)
    assert fractions[-1] == 1.0


def test_slow_sink_does_not_block_workers():
    entered = threading.Event()
    release = threading.Event()
    fractions = []

    def sink(fraction):
        fractions.append(fraction)
        entered.set()
        release.wait(timeout=5)

    tracker = ProgressTracker(total=3, sink=sink)
    reporter = threading.Thread(target=tracker.advance)
    reporter.start()
    assert entered.wait(timeout=5)

    # the sink is still busy with the first fraction
    other = threading.Thread(target=tracker.advance)
    other.start()
    other.join(timeout=1)
    assert not other.is_alive()
    assert tracker.processed == 2

    release.set()
    reporter.join(timeout=5)
    tracker.advance()
    tracker.finish()

    assert fractions == sorted(fractions)
    assert fractions[0] == pytest.approx(1 / 3)
    assert fractions[-1] == 1.0


def test_file_failure_does_not_stop_directory(stats, source_root, target_root, create_file, monkeypatch):
    for name in ("a.txt", "bad.txt", "c.txt"):
        create_file(source_root / name, name)

    original_copy = shutil.copy2

    def flaky_copy(src, dst, **kwargs):
        if Path(src).name == "bad.txt":
            raise OSError(5, "Input/output error", str(src))
        return original_copy(src, dst, **kwargs)

    monkeypatch.setattr(shutil, "copy2", flaky_copy)
    fractions = []
    ParallelApplier(stats, workers=2).apply(
        scan(source_root), source_root, target_root, progress=fractions.append
    )

    assert stats.count(OperationKind.ADD) == 2
    assert stats.count(OperationKind.FAILURE) == 1
    assert fractions[-1] == 1.0
    assert stats.total_bytes == len("a.txt") + len("c.txt")


def test_directory_creation_failure_fails_its_files(
    stats, sample_tree, target_root, mirror_root, create_file
):
    # a file where the mirrored "notes" directory should be
    create_file(mirror_root / "notes", "in the way")

    fractions = []
    ParallelApplier(stats, workers=2).apply(
        scan(sample_tree.root), sample_tree.root, target_root, progress=fractions.append
    )

    # both files of notes/ and the one below it fail, readme and .git/HEAD are copied
    assert stats.count(OperationKind.FAILURE) == 3
    assert stats.count(OperationKind.ADD) == 2
    assert fractions[-1] == 1.0


@pytest.mark.parametrize("workers", [1, 8])
def test_statistics_do_not_depend_on_worker_count(workers, tmp_path, create_file, base_mtime):
    source = tmp_path / "src" / "data"
    for d in range(12):
        for f in range(6):
            extension = "txt" if f % 2 else "bin"
            create_file(source / f"dir{d}" / f"file{f}.{extension}", "x" * (d + f + 1), base_mtime)

    target = tmp_path / f"target{workers}"
    target.mkdir()
    stats = StatisticsAggregator()
    ParallelApplier(stats, workers=workers).apply(scan(source), source, target)
    report = stats.finalize()

    expected_bytes = sum(d + f + 1 for d in range(12) for f in range(6))
    assert report.count(OperationKind.ADD) == 72
    assert report.total_bytes == expected_bytes
    assert dict(report.top_by_count)["txt"].count == 36
    assert dict(report.top_by_count)["bin"].count == 36
