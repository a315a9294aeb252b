"""
Safe State - file write helpers shared by the slot index and the backup store.

Features:
- Atomic writes (write to temp, fsync, then rename over the target)
- Plain overwrite mode for callers that opt out of atomic writes
- Cross-process write lock built on filelock

Usage:
    from core.safe_state import write_bytes, write_lock

    write_bytes(Path("data/telewindy-data1.json"), payload)

    with write_lock(Path("data/.write.lock")):
        ...
"""

import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from filelock import FileLock, Timeout as FileLockTimeout

logger = logging.getLogger(__name__)


class StateLockError(Exception):
    """Raised when unable to acquire the write lock."""
    pass


def write_bytes(file_path: Union[str, Path], payload: bytes, atomic: bool = True) -> int:
    """
    Fully replace the contents of file_path with payload.

    Args:
        file_path: Target file
        payload: Bytes to write
        atomic: Write to a sibling temp file and rename it into place, so a
            concurrent reader sees either the old or the new content

    Returns:
        Number of bytes written

    Raises:
        OSError: If the write or rename fails
    """
    file_path = Path(file_path)

    if not atomic:
        with open(file_path, 'wb') as f:
            f.write(payload)
            f.flush()
        return len(payload)

    # Unique per writer so two concurrent saves never share a temp file
    temp_path = file_path.with_name(f".{file_path.name}.{os.getpid()}.{threading.get_ident()}.tmp")
    try:
        with open(temp_path, 'wb') as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())

        os.replace(temp_path, file_path)
    except OSError:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        raise

    return len(payload)


@contextmanager
def write_lock(lock_path: Union[str, Path], timeout: float = 10.0) -> Iterator[None]:
    """
    Hold an exclusive file lock for the duration of the block.

    Raises:
        StateLockError: If the lock cannot be acquired within timeout
    """
    lock = FileLock(str(lock_path), timeout=timeout)
    try:
        lock.acquire()
    except FileLockTimeout:
        logger.warning(f"Timeout acquiring lock {lock_path}")
        raise StateLockError(f"Could not acquire lock {lock_path}")

    try:
        yield
    finally:
        lock.release()
