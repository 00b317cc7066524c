"""Bounded undo/redo history of document snapshots."""

from typing import Optional

from dictanote.models.document import Snapshot
from dictanote.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_HISTORY_DEPTH = 5


class HistoryManager:
    """
    Two bounded LIFO stacks of snapshots: past (undo) and future (redo).

    - push() is idempotent: a snapshot equal to the top of past is ignored
    - any successful push clears future (a new edit discards the redo branch)
    - past keeps at most max_depth entries; the oldest are dropped silently

    Example:
        >>> history = HistoryManager(max_depth=5)
        >>> history.push(document.snapshot())
        >>> document.update(block_id, "new text")
        >>> restored = history.undo(document.snapshot())
        >>> document.restore(restored)
    """

    def __init__(self, max_depth: int = DEFAULT_HISTORY_DEPTH):
        """
        Initialize history.

        Args:
            max_depth: Maximum number of snapshots kept on each stack (>= 1)
        """
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        self.max_depth = max_depth
        self._past: list[Snapshot] = []
        self._future: list[Snapshot] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    @property
    def past_depth(self) -> int:
        return len(self._past)

    @property
    def future_depth(self) -> int:
        return len(self._future)

    def push(self, snapshot: Snapshot) -> bool:
        """
        Record the state before a mutating action.

        Args:
            snapshot: Document state captured before mutation

        Returns:
            True if the snapshot was recorded, False if it equals the top of past
        """
        if self._past and self._past[-1] == snapshot:
            logger.debug("history_push_skipped", reason="identical_snapshot")
            return False

        self._past.append(snapshot)
        self._future.clear()

        dropped = len(self._past) - self.max_depth
        if dropped > 0:
            del self._past[:dropped]

        logger.debug("history_pushed", past_depth=len(self._past), dropped=max(dropped, 0))
        return True

    def undo(self, current: Snapshot) -> Optional[Snapshot]:
        """
        Step back one action.

        Args:
            current: Current document state (moved onto the redo stack)

        Returns:
            Snapshot to restore, or None if there is nothing to undo
        """
        if not self._past:
            return None

        previous = self._past.pop()
        self._future.append(current)
        if len(self._future) > self.max_depth:
            del self._future[0]

        logger.debug("history_undo", past_depth=len(self._past), future_depth=len(self._future))
        return previous

    def redo(self, current: Snapshot) -> Optional[Snapshot]:
        """
        Re-apply the most recently undone action.

        Args:
            current: Current document state (moved onto the undo stack)

        Returns:
            Snapshot to restore, or None if there is nothing to redo
        """
        if not self._future:
            return None

        following = self._future.pop()
        self._past.append(current)
        if len(self._past) > self.max_depth:
            del self._past[0]

        logger.debug("history_redo", past_depth=len(self._past), future_depth=len(self._future))
        return following

    def clear(self) -> None:
        """Forget all history (used when a different document is loaded)."""
        self._past.clear()
        self._future.clear()
