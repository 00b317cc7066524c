"""Staging area for AI rewrites awaiting user confirmation."""

from typing import Optional

from dictanote.models.suggestion import PendingSuggestion
from dictanote.utils.logging import get_logger


logger = get_logger(__name__)


class ReviewStaging:
    """Holds at most one PendingSuggestion.

    Staging a new suggestion always replaces the previous one outright.
    """

    def __init__(self):
        self._pending: Optional[PendingSuggestion] = None

    @property
    def pending(self) -> Optional[PendingSuggestion]:
        """The staged suggestion, if any."""
        return self._pending

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def stage(self, suggestion: PendingSuggestion) -> None:
        """
        Stage a suggestion, discarding any previously staged one.

        Args:
            suggestion: Suggestion to stage
        """
        if self._pending is not None:
            logger.info(
                "suggestion_replaced",
                previous_scope=self._pending.scope.value,
                previous_block_id=self._pending.block_id,
            )
        self._pending = suggestion
        logger.info(
            "suggestion_staged",
            scope=suggestion.scope.value,
            block_id=suggestion.block_id,
            changed_chars=suggestion.changed_chars,
        )

    def take(self) -> Optional[PendingSuggestion]:
        """
        Remove and return the staged suggestion.

        Returns:
            The suggestion, or None if nothing was staged
        """
        suggestion = self._pending
        self._pending = None
        return suggestion

    def discard(self) -> bool:
        """
        Drop the staged suggestion.

        Returns:
            True if a suggestion was dropped
        """
        had_pending = self._pending is not None
        self._pending = None
        return had_pending
