"""Utility functions for treemirror."""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

SIZE_SUFFIXES = ("bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")


def setup_logging(
    log_file: Optional[Union[str, Path]] = None,
    level: str = "INFO",
    verbose: bool = False,
) -> None:
    """
    Configure loguru sinks:
    - File sink: enabled when a log file is given, rotates at 10 MB
    - Console sink: stderr at WARNING, only when verbose is set, so that
      regular runs keep the progress bar clean
    """
    logger.remove()

    if verbose:
        logger.add(sys.stderr, level="WARNING", backtrace=False, diagnose=False)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            level=level,
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )


def format_file_size(size: int) -> str:
    """
    Render a byte count as a human readable size.

    Examples:
        0 -> 0 bytes
        1536 -> 1.5 KB
        104857600 -> 100.0 MB
    """
    if size <= 0:
        return "0 bytes"
    units = min((size.bit_length() - 1) // 10, len(SIZE_SUFFIXES) - 1)
    return f"{size / (1 << (units * 10)):,.1f} {SIZE_SUFFIXES[units]}"
