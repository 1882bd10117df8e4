"""Common test fixtures."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import pytest

from treemirror.config import SyncConfig
from treemirror.sync.statistics import StatisticsAggregator

# A fixed point in time (2020-09-13), in nanoseconds
BASE_MTIME_NS = 1_600_000_000 * 10**9


def create_test_file(
    path: Path, content: str = "test content", mtime_ns: Optional[int] = None
) -> Path:
    """Create a test file with given content and optional modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    if mtime_ns is not None:
        os.utime(path, ns=(mtime_ns, mtime_ns))
    return path


@pytest.fixture
def create_file() -> Callable[..., Path]:
    return create_test_file


@pytest.fixture
def config_home(tmp_path, monkeypatch) -> Path:
    # Keep logs and settings of the tests away from the real home directory
    monkeypatch.setenv("HOME", str(tmp_path))
    if os.name == "nt":
        monkeypatch.setenv("USERPROFILE", str(tmp_path))
    monkeypatch.setenv("TREEMIRROR_HOME", str(tmp_path / ".treemirror"))
    return tmp_path


@pytest.fixture
def source_root(tmp_path) -> Path:
    path = tmp_path / "work" / "documents"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def target_root(tmp_path) -> Path:
    path = tmp_path / "backup"
    path.mkdir()
    return path


@pytest.fixture
def mirror_root(source_root, target_root) -> Path:
    return target_root / source_root.name


@pytest.fixture
def sync_config(source_root, target_root) -> SyncConfig:
    return SyncConfig(source=source_root, target=target_root, threads=4)


@pytest.fixture
def stats() -> StatisticsAggregator:
    return StatisticsAggregator()


@dataclass
class SampleTree:
    """Paths of the files created by the sample_tree fixture."""

    root: Path
    readme: Path
    notes: Path
    image: Path
    nested: Path
    ignored: Path


@pytest.fixture
def sample_tree(source_root) -> SampleTree:
    """A small source tree with files at several depths."""
    return SampleTree(
        root=source_root,
        readme=create_test_file(source_root / "readme.md", "# readme", BASE_MTIME_NS),
        notes=create_test_file(source_root / "notes" / "todo.txt", "buy milk", BASE_MTIME_NS),
        image=create_test_file(source_root / "notes" / "photo.PNG", "x" * 64, BASE_MTIME_NS),
        nested=create_test_file(
            source_root / "notes" / "archive" / "2019" / "old.txt", "old", BASE_MTIME_NS
        ),
        ignored=create_test_file(source_root / ".git" / "HEAD", "ref: main", BASE_MTIME_NS),
    )


@pytest.fixture
def base_mtime() -> int:
    return BASE_MTIME_NS
