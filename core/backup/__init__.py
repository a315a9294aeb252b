"""
Rotating snapshot backups for the sync server.

Usage:
    from core.backup import RotatingBackupStore
"""

from core.backup.backup_store import (
    MAX_SNAPSHOT_DEPTH,
    BackupNotFoundError,
    BackupReadError,
    BackupStoreError,
    BackupWriteError,
    RotatingBackupStore,
    SaveResult,
    nesting_depth,
)
from core.backup.slot_index import SlotIndex, next_slot

__all__ = [
    "MAX_SNAPSHOT_DEPTH",
    "BackupNotFoundError",
    "BackupReadError",
    "BackupStoreError",
    "BackupWriteError",
    "RotatingBackupStore",
    "SaveResult",
    "SlotIndex",
    "nesting_depth",
    "next_slot",
]
