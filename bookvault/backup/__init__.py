"""
Backup and restore of bookvault documents to local files and remote storage.
"""

from bookvault.backup.orchestrator import (
    BackupOrchestrator,
    BackupRequest,
    RequestState,
)
from bookvault.backup.targets import BackupTarget, Medium
from bookvault.backup.tracker import RestoreTracker

__all__ = [
    "BackupOrchestrator",
    "BackupRequest",
    "BackupTarget",
    "Medium",
    "RequestState",
    "RestoreTracker",
]
