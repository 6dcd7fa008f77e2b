"""
Snapshot history with bounded undo/redo.

VersionedStore keeps an ordered list of immutable snapshots and an index
pointing at the current one. Committing a new snapshot discards everything
after the index, so redo history is lost as soon as the user makes a new
change after undoing. reset_data() replaces the whole history and is used by
restore flows, which are not themselves undoable.
"""

from __future__ import annotations

import logging
from typing import Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class VersionedStoreError(Exception):
    """Raised when a history operation cannot be performed."""

    pass


class NoUndoAvailable(VersionedStoreError):
    """Raised by undo() when the current snapshot is the oldest one."""

    pass


class NoRedoAvailable(VersionedStoreError):
    """Raised by redo() when the current snapshot is the newest one."""

    pass


class VersionedStore(Generic[T]):
    """
    History-tracking container over immutable snapshots.

    The store always holds at least one snapshot, and the current index
    satisfies 0 <= index < len(store).

    Attributes:
        max_history: Maximum snapshots retained (None = unbounded). When a
            commit exceeds it, the oldest snapshots are dropped.

    Usage:
        store = VersionedStore(empty_book)
        store.commit(book_with_alice)
        store.undo()      # back to empty_book
        store.redo()      # book_with_alice again
    """

    def __init__(self, initial: T, max_history: int | None = None):
        if max_history is not None and max_history < 1:
            raise ValueError("max_history must be at least 1")
        self._states: list[T] = [initial]
        self._index = 0
        self.max_history = max_history

    @property
    def index(self) -> int:
        return self._index

    @property
    def current_snapshot(self) -> T:
        return self._states[self._index]

    def __len__(self) -> int:
        return len(self._states)

    def current(self) -> T:
        """Return the snapshot at the current index."""
        return self._states[self._index]

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._states) - 1

    def commit(self, snapshot: T) -> None:
        """
        Record a new snapshot, discarding any redo-able future.

        Args:
            snapshot: The new current state
        """
        discarded = len(self._states) - self._index - 1
        if discarded:
            logger.debug(f"Commit discards {discarded} redo snapshot(s)")
        del self._states[self._index + 1 :]
        self._states.append(snapshot)

        if self.max_history is not None and len(self._states) > self.max_history:
            del self._states[: len(self._states) - self.max_history]

        self._index = len(self._states) - 1

    def undo(self) -> T:
        """
        Step back to the previous snapshot.

        Returns:
            The snapshot that is now current

        Raises:
            NoUndoAvailable: If there is no earlier snapshot
        """
        if not self.can_undo():
            raise NoUndoAvailable("No more commands to undo")
        self._index -= 1
        return self._states[self._index]

    def redo(self) -> T:
        """
        Step forward to the next snapshot.

        Returns:
            The snapshot that is now current

        Raises:
            NoRedoAvailable: If there is no later snapshot
        """
        if not self.can_redo():
            raise NoRedoAvailable("No more commands to redo")
        self._index += 1
        return self._states[self._index]

    def reset_data(self, snapshot: T) -> None:
        """Replace the entire history with a single snapshot."""
        self._states = [snapshot]
        self._index = 0

    def __repr__(self) -> str:
        return f"VersionedStore(index={self._index}, snapshots={len(self._states)})"
