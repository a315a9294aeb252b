"""
Rotating Backup Store - fixed ring of numbered snapshot files.

Each save goes to the slot after the one recorded in the slot index,
wrapping from N back to 1, and fully overwrites that slot. Reads ignore the
index and return the slot file with the newest modification time, so the
latest snapshot survives a lost or corrupted index.

Layout in data_dir:
    telewindy-data1.json .. telewindy-dataN.json   - snapshot slots
    current_index.txt                              - last slot written
    .write.lock                                    - only with serialize_writes

Usage:
    store = RotatingBackupStore(Path("data"), capacity=20)

    result = store.save({"contacts": [...]})
    snapshot = store.load_latest()
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import orjson

from core.backup.slot_index import SlotIndex
from core.safe_state import StateLockError, write_bytes, write_lock

logger = logging.getLogger(__name__)


class BackupStoreError(Exception):
    """Base class for backup store failures."""
    pass


class BackupNotFoundError(BackupStoreError):
    """Raised when no slot file exists yet."""
    pass


class BackupWriteError(BackupStoreError):
    """Raised when a snapshot cannot be serialized or written."""
    pass


class BackupReadError(BackupStoreError):
    """Raised when the latest slot cannot be read or decoded."""
    pass


@dataclass
class SaveResult:
    """Result of a save operation."""
    slot: int
    path: Path
    size_bytes: int


# orjson refuses to serialize containers nested deeper than this
MAX_SNAPSHOT_DEPTH = 254


def nesting_depth(value: Any) -> int:
    """Deepest level of nested objects/arrays in a decoded JSON value (0 for scalars)."""
    if not isinstance(value, (dict, list)):
        return 0

    deepest = 0
    stack = [(value, 1)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        children = node.values() if isinstance(node, dict) else node
        stack.extend((child, depth + 1) for child in children if isinstance(child, (dict, list)))

    return deepest


class RotatingBackupStore:
    """
    Round-robin snapshot storage over capacity numbered slots.

    Without serialize_writes two concurrent saves can read the same index,
    pick the same slot, and the later write wins.
    """

    LOCK_FILE = ".write.lock"

    def __init__(
        self,
        data_dir: Path,
        capacity: int = 20,
        file_prefix: str = "telewindy-data",
        index_file: str = "current_index.txt",
        atomic_writes: bool = True,
        serialize_writes: bool = False,
    ):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")

        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.capacity = capacity
        self.file_prefix = file_prefix
        self.atomic_writes = atomic_writes
        self.serialize_writes = serialize_writes
        self.index = SlotIndex(self.data_dir / index_file, capacity, atomic_writes=atomic_writes)

    @classmethod
    def from_config(cls, config) -> 'RotatingBackupStore':
        return cls(
            data_dir=config.data_dir,
            capacity=config.max_backups,
            file_prefix=config.file_prefix,
            index_file=config.index_file,
            atomic_writes=config.atomic_writes,
            serialize_writes=config.serialize_writes,
        )

    def slot_path(self, slot: int) -> Path:
        if not 1 <= slot <= self.capacity:
            raise ValueError(f"slot {slot} outside 1..{self.capacity}")
        return self.data_dir / f"{self.file_prefix}{slot}.json"

    def save(self, snapshot: Any) -> SaveResult:
        """
        Write snapshot to the next slot in the ring.

        The index is advanced and persisted before the snapshot is written
        and is not rolled back if the write fails.

        Raises:
            BackupWriteError: If the write lock times out, or serialization
                or any file write fails
        """
        if not self.serialize_writes:
            return self._write_next(snapshot)

        try:
            with write_lock(self.data_dir / self.LOCK_FILE):
                return self._write_next(snapshot)
        except StateLockError as e:
            logger.error(f"Timed out waiting for write lock in {self.data_dir}")
            raise BackupWriteError(f"Backup store is busy: {e}") from e

    def _write_next(self, snapshot: Any) -> SaveResult:
        try:
            slot = self.index.advance()
        except OSError as e:
            logger.error(f"Failed to persist slot index: {e}")
            raise BackupWriteError(f"Could not update slot index: {e}") from e

        logger.info(f"Writing backup slot [ {slot} / {self.capacity} ]")
        path = self.slot_path(slot)

        try:
            payload = orjson.dumps(snapshot, option=orjson.OPT_INDENT_2)
        except TypeError as e:
            logger.error(f"Snapshot for slot {slot} is not serializable: {e}")
            raise BackupWriteError(f"Snapshot could not be serialized: {e}") from e

        try:
            size = write_bytes(path, payload, atomic=self.atomic_writes)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise BackupWriteError(f"Could not write backup slot {slot}: {e}") from e

        return SaveResult(slot=slot, path=path, size_bytes=size)

    def latest_slot(self) -> Optional[int]:
        """Slot whose file was modified most recently, or None if no slot exists."""
        latest = None
        latest_mtime = -1

        for slot in range(1, self.capacity + 1):
            try:
                mtime = self.slot_path(slot).stat().st_mtime_ns
            except FileNotFoundError:
                continue

            # Strictly greater keeps the lowest slot on equal timestamps
            if mtime > latest_mtime:
                latest_mtime = mtime
                latest = slot

        return latest

    def load_latest(self) -> Any:
        """
        Return the most recently written snapshot.

        Raises:
            BackupNotFoundError: If no slot file exists
            BackupReadError: If the selected file cannot be read or decoded
        """
        slot = self.latest_slot()
        if slot is None:
            raise BackupNotFoundError("No backup has been written yet")

        path = self.slot_path(slot)
        logger.info(f"Reading latest backup: {path.name}")

        try:
            return orjson.loads(path.read_bytes())
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            raise BackupReadError(f"Could not read backup slot {slot}: {e}") from e
        except orjson.JSONDecodeError as e:
            logger.error(f"Backup {path} is corrupted: {e}")
            raise BackupReadError(f"Backup slot {slot} is not valid JSON: {e}") from e
