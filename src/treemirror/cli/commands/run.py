"""Command module for treemirror mirror runs."""

import time
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import typer
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

from treemirror.cli.app import app
from treemirror.config import AppSettings, SyncConfig
from treemirror.models import (
    NO_EXTENSION,
    ExtensionPreset,
    ExtensionStat,
    OperationKind,
    RunStatistics,
)
from treemirror.sync import SyncService
from treemirror.utils import format_file_size, setup_logging

console = Console()


class MessageType(str, Enum):
    INFO = "INFO"
    ERROR = "ERROR"


MESSAGE_STYLES = {
    MessageType.INFO: "cyan",
    MessageType.ERROR: "yellow",
}


def print_tagged(message_type: MessageType, message: str) -> None:
    console.print(
        Text.assemble((f"[{message_type.value}] ", MESSAGE_STYLES[message_type]), message),
        soft_wrap=True,
    )


def format_extension(key: str) -> str:
    return key if key == NO_EXTENSION else f".{key}"


def format_extensions(items: List[Tuple[str, ExtensionStat]], by_size: bool) -> str:
    if by_size:
        return ", ".join(f"{format_extension(k)}: {format_file_size(s.bytes)}" for k, s in items)
    return ", ".join(f"{format_extension(k)}: {s.count}" for k, s in items)


def extract_statistics(report: RunStatistics, verbose: bool) -> Iterator[str]:
    """Lines describing a finished run, the verbose ones include extension details."""
    yield f"Elapsed time:\t\t{report.elapsed}"
    yield f"Added files:\t\t{report.count(OperationKind.ADD)}"
    yield f"Updated files:\t\t{report.count(OperationKind.UPDATE)}"
    yield f"Removed files:\t\t{report.count(OperationKind.REMOVE)}"
    if report.count(OperationKind.FAILURE):
        yield f"Failed files:\t\t{report.count(OperationKind.FAILURE)}"
    if verbose:
        yield f"Scanned files:\t\t{report.scanned_files}"
        yield f"Bytes copied:\t\t{report.total_bytes}"
    yield f"Approximate size:\t{format_file_size(report.total_bytes)}"
    if verbose and report.top_by_count:
        yield f"Frequent extensions:\t{format_extensions(report.top_by_count, by_size=False)}"
        yield f"Heaviest extensions:\t{format_extensions(report.top_by_bytes, by_size=True)}"


def error_messages(error: Exception) -> List[str]:
    if isinstance(error, ValidationError):
        return [e["msg"].removeprefix("Value error, ") for e in error.errors()]
    return [str(error)]


def build_config(
    target: Path,
    source: Optional[Path],
    source_current: bool,
    include: Optional[str],
    exclude: Optional[str],
    preset: Optional[ExtensionPreset],
    max_size: int,
    threads: int,
    verbose: bool,
) -> SyncConfig:
    """Validate the command options into a SyncConfig.

    Raises:
        ValueError: If the source options are missing or conflicting
        ValidationError: If any other option is invalid
    """
    if source_current and source is not None:
        raise ValueError("The --source-current and --source options can't be used at the same time")
    if source_current:
        source = Path.cwd()
    if source is None:
        raise ValueError("The source directory can't be empty")

    return SyncConfig(
        source=source,
        target=target,
        include=include,
        exclude=exclude,
        preset=preset,
        max_size=max_size,
        threads=threads,
        verbose=verbose,
    )


def notify(success: bool) -> None:
    """Two short bells on success, a single one on failure."""
    console.bell()
    if success:
        time.sleep(0.15)
        console.bell()


def run_sync(config: SyncConfig) -> RunStatistics:
    """Run the mirror with a progress bar."""
    service = SyncService(config)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Mirroring...", total=1.0)
        return service.sync(lambda fraction: progress.update(task, completed=fraction))


@app.command()
def run(
    target: Path = typer.Option(
        ...,
        "--target",
        "-t",
        help="The target directory to use to store the backup.",
    ),
    source: Optional[Path] = typer.Option(
        None,
        "--source",
        "-s",
        help="The source directory to backup.",
    ),
    source_current: bool = typer.Option(
        False,
        "--source-current",
        help="Use the current working directory as the source directory.",
    ),
    include: Optional[str] = typer.Option(
        None,
        "--include",
        "-i",
        help="Comma-separated file extensions to copy. If not specified, all files are copied.",
    ),
    exclude: Optional[str] = typer.Option(
        None,
        "--exclude",
        "-e",
        help="Comma-separated file extensions to ignore.",
    ),
    preset: Optional[ExtensionPreset] = typer.Option(
        None,
        "--preset",
        "-p",
        case_sensitive=False,
        help="A preset for common file types, can't be used with --include or --exclude.",
    ),
    max_size: Optional[int] = typer.Option(
        None,
        "--maxsize",
        "-M",
        help="The maximum size in bytes of files to be copied.",
    ),
    threads: Optional[int] = typer.Option(
        None,
        "--threads",
        "-j",
        help="Number of worker threads, 0 uses all available cores.",
    ),
    beep: bool = typer.Option(
        False,
        "--beep",
        "-b",
        help="Play a sound when the operation completes.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Display additional statistics.",
    ),
) -> None:
    """Execute or update a backup of the source directory."""
    settings = AppSettings()
    setup_logging(log_file=settings.log_file, level=settings.log_level, verbose=verbose)

    try:
        config = build_config(
            target=target,
            source=source,
            source_current=source_current,
            include=include,
            exclude=exclude,
            preset=preset,
            max_size=max_size if max_size is not None else settings.max_size,
            threads=threads if threads is not None else settings.threads,
            verbose=verbose,
        )
    except (ValidationError, ValueError) as e:
        for message in error_messages(e):
            print_tagged(MessageType.ERROR, message)
        finish(success=False, beep=beep)
        raise typer.Exit(1)

    console.print("\n==== START ====", style="green")
    try:
        report = run_sync(config)
    except Exception as e:
        logger.exception("Sync failed")
        print_tagged(MessageType.ERROR, str(e))
        finish(success=False, beep=beep)
        raise typer.Exit(1)

    for line in extract_statistics(report, verbose):
        print_tagged(MessageType.INFO, line)
    finish(success=True, beep=beep)


def finish(success: bool, beep: bool) -> None:
    if success:
        console.print("==== SUCCESS ====", style="green")
    else:
        console.print("==== FAILURE ====", style="red")
    if beep:
        notify(success)
