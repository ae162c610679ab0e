"""Snapshot backup orchestration."""

from .fsck import CheckOutcome, interpret_fsck
from .orchestrator import (
    Backup,
    BackupResult,
    FilesystemResult,
    Phase,
    PlannedSnapshot,
    StepRecord,
)
from .scan import ScanInvocation

__all__ = [
    "Backup",
    "BackupResult",
    "CheckOutcome",
    "FilesystemResult",
    "Phase",
    "PlannedSnapshot",
    "ScanInvocation",
    "StepRecord",
    "interpret_fsck",
]
