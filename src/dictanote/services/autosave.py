"""Debounced autosave of the in-memory document."""

import asyncio
import json
from datetime import datetime, timezone
from typing import Callable, Optional

from dictanote.models.stored_document import StoredBlock
from dictanote.services.exceptions import PersistenceError
from dictanote.services.storage import DocumentStore
from dictanote.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_AUTOSAVE_DELAY = 2.0


def _serialize(blocks: list[StoredBlock]) -> str:
    return json.dumps([block.model_dump() for block in blocks], ensure_ascii=False)


class AutoSaver:
    """
    Write the document to a store shortly after it stops changing.

    The saver only reads: snapshot_source returns the current blocks and is
    called at write time. A write is skipped when the serialization equals
    the last one synced. A failed write sets a sticky out_of_sync flag that
    only the next successful write clears; local editing is never blocked.

    Example:
        >>> saver = AutoSaver(store, "groceries", lambda: document_to_stored(router.document))
        >>> saver.schedule()        # on every document change
        >>> await saver.flush()     # on explicit save or shutdown
    """

    def __init__(
        self,
        store: DocumentStore,
        document_id: str,
        snapshot_source: Callable[[], list[StoredBlock]],
        delay: float = DEFAULT_AUTOSAVE_DELAY,
        on_status_change: Optional[Callable[[], None]] = None,
    ):
        """
        Initialize autosaver.

        Args:
            store: Persistence collaborator
            document_id: Key the document is saved under
            snapshot_source: Returns the blocks to persist at write time
            delay: Debounce delay in seconds
            on_status_change: Called after every sync attempt (for status displays)
        """
        self.store = store
        self.document_id = document_id
        self.snapshot_source = snapshot_source
        self.delay = delay
        self.on_status_change = on_status_change

        self.out_of_sync = False
        self.last_error: Optional[str] = None
        self.is_syncing = False
        self.last_synced_at: Optional[datetime] = None

        self._last_synced: Optional[str] = None
        self._timer: Optional[asyncio.Task] = None

    @property
    def has_unsynced_changes(self) -> bool:
        """True when the current document differs from the last synced one."""
        return _serialize(self.snapshot_source()) != self._last_synced

    @property
    def is_scheduled(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def mark_synced(self) -> None:
        """Record the current document as already persisted (e.g. right after loading it)."""
        self._last_synced = _serialize(self.snapshot_source())

    def schedule(self) -> None:
        """
        (Re)start the debounce timer.

        Outside a running event loop nothing is scheduled; the change is
        picked up by the next flush().
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("autosave_not_scheduled", document_id=self.document_id, reason="no_event_loop")
            return

        self._cancel_timer()
        self._timer = loop.create_task(self._debounced())

    async def flush(self) -> bool:
        """
        Write the document now if it changed since the last sync.

        Returns:
            True if the document is in sync afterwards, False if the write failed
        """
        self._cancel_timer()

        blocks = self.snapshot_source()
        serialized = _serialize(blocks)
        if serialized == self._last_synced:
            logger.debug("autosave_skipped", document_id=self.document_id, reason="unchanged")
            return True

        self.is_syncing = True
        self._notify()
        try:
            await asyncio.to_thread(self.store.save, self.document_id, blocks)
        except PersistenceError as e:
            self.out_of_sync = True
            self.last_error = e.message
            logger.error("autosave_failed", document_id=self.document_id, error=str(e))
            return False
        finally:
            self.is_syncing = False
            self._notify()

        self._last_synced = serialized
        self.out_of_sync = False
        self.last_error = None
        self.last_synced_at = datetime.now(timezone.utc)
        logger.info("autosave_completed", document_id=self.document_id, block_count=len(blocks))
        self._notify()
        return True

    async def close(self) -> bool:
        """Cancel any pending timer and write outstanding changes."""
        return await self.flush()

    async def _debounced(self) -> None:
        await asyncio.sleep(self.delay)
        self._timer = None
        await self.flush()

    def _cancel_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None and not timer.done() and timer is not asyncio.current_task():
            timer.cancel()

    def _notify(self) -> None:
        if self.on_status_change is not None:
            self.on_status_change()
