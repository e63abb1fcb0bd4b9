"""
Undo stack of pre-operation image snapshots.
"""

import logging

from .pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)


class EditHistory:
    """
    Stack of PixelBuffer snapshots, most recent last.

    Snapshots are copied on push and the copy is made read-only, so nothing
    holding the original buffer can change an entry afterwards. The stack
    is unbounded.
    """
    def __init__(self):
        self._entries: list[PixelBuffer] = []

    def push(self, buffer: PixelBuffer):
        snapshot = buffer.copy()
        snapshot.data.setflags(write=False)
        self._entries.append(snapshot)
        logger.debug(f"History push: {snapshot!r} (depth {len(self._entries)})")

    def pop(self) -> PixelBuffer | None:
        """Remove and return the newest snapshot, or None when empty."""
        if not self._entries:
            return None
        snapshot = self._entries.pop()
        logger.debug(f"History pop: {snapshot!r} (depth {len(self._entries)})")
        return snapshot

    def peek(self) -> PixelBuffer | None:
        return self._entries[-1] if self._entries else None

    def is_empty(self) -> bool:
        return not self._entries

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)
