"""Unit tests for the debounced AutoSaver."""

import asyncio

import pytest

from dictanote.models.document import Document
from dictanote.services.autosave import AutoSaver
from dictanote.services.exceptions import PersistenceError
from dictanote.services.storage import DocumentStore, InMemoryDocumentStore, document_to_stored


class FlakyStore(DocumentStore):
    """Store whose writes fail while `failing` is set."""

    def __init__(self):
        self.failing = True
        self.saved = None

    def save(self, document_id, blocks):
        if self.failing:
            raise PersistenceError(document_id, "Disk full")
        self.saved = list(blocks)

    def load(self, document_id):
        return self.saved


@pytest.fixture
def document():
    return Document.from_pairs([("b1", "- Buy milk")])


def make_saver(store, document, **kwargs):
    return AutoSaver(store, "groceries", lambda: document_to_stored(document), **kwargs)


class TestFlush:
    """Test immediate writes."""

    @pytest.mark.asyncio
    async def test_flush_writes_document(self, document):
        store = InMemoryDocumentStore()
        saver = make_saver(store, document)

        assert await saver.flush()

        assert store.save_count == 1
        assert [b.content for b in store.load("groceries")] == ["- Buy milk"]
        assert saver.last_synced_at is not None
        assert not saver.has_unsynced_changes

    @pytest.mark.asyncio
    async def test_unchanged_document_is_not_rewritten(self, document):
        store = InMemoryDocumentStore()
        saver = make_saver(store, document)

        await saver.flush()
        await saver.flush()
        assert store.save_count == 1

        document.update("b1", "- Buy oat milk")
        assert saver.has_unsynced_changes
        await saver.flush()
        assert store.save_count == 2

    @pytest.mark.asyncio
    async def test_mark_synced_skips_write(self, document):
        store = InMemoryDocumentStore()
        saver = make_saver(store, document)

        saver.mark_synced()

        assert await saver.flush()
        assert store.save_count == 0

    @pytest.mark.asyncio
    async def test_failed_write_sets_sticky_flag(self, document):
        """Test that out_of_sync stays set until a write succeeds."""
        store = FlakyStore()
        saver = make_saver(store, document)

        assert not await saver.flush()
        assert saver.out_of_sync
        assert saver.last_error == "Disk full"
        assert saver.has_unsynced_changes

        # Still out of sync on a retry that fails again
        assert not await saver.flush()
        assert saver.out_of_sync

        store.failing = False
        assert await saver.flush()
        assert not saver.out_of_sync
        assert saver.last_error is None
        assert [b.content for b in store.saved] == ["- Buy milk"]

    @pytest.mark.asyncio
    async def test_status_callback(self, document):
        calls = []
        saver = make_saver(
            InMemoryDocumentStore(),
            document,
            on_status_change=lambda: calls.append(saver.is_syncing),
        )

        await saver.flush()

        assert calls[0] is True
        assert calls[-1] is False


class TestDebounce:
    """Test the debounce timer."""

    @pytest.mark.asyncio
    async def test_burst_of_changes_writes_once(self, document):
        store = InMemoryDocumentStore()
        saver = make_saver(store, document, delay=0.01)

        for i in range(3):
            document.update("b1", f"- Buy {i} eggs")
            saver.schedule()

        assert saver.is_scheduled
        await asyncio.sleep(0.1)

        assert store.save_count == 1
        assert store.load("groceries")[0].content == "- Buy 2 eggs"
        assert not saver.is_scheduled

    @pytest.mark.asyncio
    async def test_close_flushes_pending_changes(self, document):
        store = InMemoryDocumentStore()
        saver = make_saver(store, document, delay=60)

        saver.schedule()
        assert await saver.close()

        assert store.save_count == 1
        assert not saver.is_scheduled

    def test_schedule_without_event_loop_is_noop(self, document):
        saver = make_saver(InMemoryDocumentStore(), document)

        saver.schedule()

        assert not saver.is_scheduled
