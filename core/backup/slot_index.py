"""
Slot Index - persisted pointer to the last backup slot written.

The index is a small text file holding one integer. 0 means nothing has
been written yet. A missing, unreadable or garbled index is read as 0 so
the save path never fails because of the counter.
"""

import logging
import re
from pathlib import Path

from core.safe_state import write_bytes

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def next_slot(current: int, capacity: int) -> int:
    """
    Return the slot that follows current in a ring of capacity slots.

    current + 1 while that stays within capacity, otherwise wrap to 1.
    """
    if capacity < 1:
        raise ValueError(f"capacity must be >= 1, got {capacity}")

    candidate = max(current, 0) + 1
    if candidate > capacity:
        return 1
    return candidate


def parse_index(text: str) -> int:
    """Parse index file content; anything unusable becomes 0."""
    match = _LEADING_INT.match(text or "")
    if not match:
        return 0
    return int(match.group(1))


class SlotIndex:
    """Last-written slot counter stored at path."""

    def __init__(self, path: Path, capacity: int, atomic_writes: bool = True):
        self.path = Path(path)
        self.capacity = capacity
        self.atomic_writes = atomic_writes

    def load(self) -> int:
        if not self.path.exists():
            return 0

        try:
            content = self.path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Slot index unreadable, treating as 0: {e}")
            return 0

        value = parse_index(content)
        if value == 0 and content.strip() not in ("", "0"):
            logger.warning(f"Slot index is not numeric ({content[:20]!r}), treating as 0")
        return value

    def store(self, slot: int) -> None:
        write_bytes(self.path, str(slot).encode('utf-8'), atomic=self.atomic_writes)

    def advance(self) -> int:
        """Load, step to the next slot, persist it and return it."""
        slot = next_slot(self.load(), self.capacity)
        self.store(slot)
        return slot
