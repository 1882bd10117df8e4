"""Per-file copy decisions."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from loguru import logger

from treemirror import file_utils
from treemirror.models import OperationKind, OperationRecord


class SyncAction(str, Enum):
    SKIP = "skip"
    ADD = "add"
    UPDATE = "update"


@dataclass(frozen=True)
class SyncDecision:
    action: SyncAction

    @property
    def is_copy(self) -> bool:
        return self.action != SyncAction.SKIP

    @property
    def is_update(self) -> bool:
        return self.action == SyncAction.UPDATE


SKIP = SyncDecision(SyncAction.SKIP)
ADD = SyncDecision(SyncAction.ADD)
UPDATE = SyncDecision(SyncAction.UPDATE)


class SyncPlanner:
    """
    Decides whether a source file has to be copied, and performs the copy.
    The newer modification time wins; equal times are left alone even when
    the sizes differ.
    """

    def decide(self, source: Path, target: Path) -> SyncDecision:
        """
        Compare a source file with its mirrored target.

        Raises:
            OSError: If either file can't be inspected
        """
        try:
            target_mtime = target.stat().st_mtime_ns
        except FileNotFoundError:
            return ADD

        if source.stat().st_mtime_ns > target_mtime:
            return UPDATE
        return SKIP

    def execute(self, source: Path, target: Path, decision: SyncDecision) -> None:
        """
        Apply a copy decision, only updates may overwrite the target.

        Raises:
            FileWriteError: If the copy fails
        """
        if not decision.is_copy:
            return
        file_utils.copy_file(source, target, overwrite=decision.is_update)

    def sync_file(self, source: Path, target: Path) -> Optional[OperationRecord]:
        """
        Bring a single target file up to date.

        Returns:
            None when nothing had to be done, otherwise the record of the
            add, update or failure
        """
        try:
            decision = self.decide(source, target)
            self.execute(source, target, decision)
        except (file_utils.FileError, OSError) as e:
            logger.debug(f"Failed to sync {source}: {e}")
            return OperationRecord(path=target, kind=OperationKind.FAILURE, error=str(e))

        if not decision.is_copy:
            return None
        kind = OperationKind.UPDATE if decision.is_update else OperationKind.ADD
        return OperationRecord(path=target, kind=kind)
