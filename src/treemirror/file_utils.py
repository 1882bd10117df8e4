"""Utilities for file operations."""

import os
import shutil
import stat
from pathlib import Path

from loguru import logger

# Suffix of the file a copy is written to before it replaces its target
PARTIAL_SUFFIX = ".treemirror-partial"


class FileError(Exception):
    """Base exception for file operations."""

    pass


class FileWriteError(FileError):
    """Raised when a file or directory can't be written."""

    pass


class FileDeleteError(FileError):
    """Raised when a file or directory can't be deleted."""

    pass


def ensure_directory(path: Path) -> None:
    """
    Ensure directory exists, creating if necessary.

    Args:
        path: Directory path to ensure

    Raises:
        FileWriteError: If directory creation fails
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create directory: {path}: {e}")
        raise FileWriteError(f"Failed to create directory {path}: {e}") from e


def is_read_only(path: Path) -> bool:
    """Check whether the owner write bit of a file is cleared."""
    return not path.stat().st_mode & stat.S_IWUSR


def clear_read_only(path: Path) -> None:
    """Restore the owner write bit so the file can be overwritten."""
    mode = stat.S_IMODE(path.stat().st_mode)
    path.chmod(mode | stat.S_IWUSR)


def partial_path(target: Path) -> Path:
    """Sibling path a copy is written to before it replaces the target."""
    return target.with_name(f"{target.name}{PARTIAL_SUFFIX}")


def copy_file(source: Path, target: Path, overwrite: bool = False) -> None:
    """
    Copy a file along with its modification time.

    The data is written to a partial file next to the target first and only
    renamed over the target once complete, so a failed copy never leaves a
    truncated target behind.

    Args:
        source: File to copy
        target: Destination path
        overwrite: Whether an existing target may be replaced

    Raises:
        FileWriteError: If the copy fails, or the target exists and
            overwrite is not allowed
    """
    partial = partial_path(target)
    try:
        if target.exists():
            if not overwrite:
                raise FileExistsError(f"{target} already exists")
            if is_read_only(target):
                logger.debug(f"Clearing read-only attribute: {target}")
                clear_read_only(target)
        try:
            shutil.copy2(source, partial)
            os.replace(partial, target)
        except OSError:
            discard_partial(partial)
            raise
    except OSError as e:
        logger.error(f"Failed to copy {source} -> {target}: {e}")
        raise FileWriteError(f"Failed to copy {source} to {target}: {e}") from e


def discard_partial(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Failed to remove partial copy {path}: {e}")


def delete_file(path: Path) -> None:
    """
    Delete a single file.

    Raises:
        FileDeleteError: If the file can't be removed
    """
    try:
        path.unlink()
    except OSError as e:
        raise FileDeleteError(f"Failed to delete {path}: {e}") from e


def remove_empty_directory(path: Path) -> bool:
    """
    Remove a directory if it has no entries left.

    Returns:
        True if the directory was removed
    """
    try:
        with os.scandir(path) as entries:
            if next(entries, None) is not None:
                return False
        path.rmdir()
        return True
    except OSError as e:
        logger.debug(f"Failed to remove directory {path}: {e}")
        return False
