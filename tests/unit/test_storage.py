"""Unit tests for document stores and atomic_write."""

import json

import pytest

from dictanote.models.document import Document
from dictanote.models.stored_document import StoredBlock
from dictanote.services.exceptions import PersistenceError
from dictanote.services.storage import (
    FileDocumentStore,
    InMemoryDocumentStore,
    atomic_write,
    document_to_stored,
    stored_to_document,
)


BLOCKS = [StoredBlock(id="b1", content="# Groceries"), StoredBlock(id="b2", content="- Buy milk")]


class TestAtomicWrite:
    """Test atomic_write function."""

    def test_atomic_write_creates_new_file(self, tmp_path):
        """Test that atomic_write creates a new file successfully."""
        target = tmp_path / "new_file.json"

        atomic_write(target, '{"a": 1}')

        assert target.read_text() == '{"a": 1}'

    def test_atomic_write_overwrites_existing_file(self, tmp_path):
        target = tmp_path / "existing.json"
        target.write_text("Old content")

        atomic_write(target, "New content")

        assert target.read_text() == "New content"

    def test_no_temp_file_left_behind(self, tmp_path):
        atomic_write(tmp_path / "doc.json", "x")
        assert [p.name for p in tmp_path.iterdir()] == ["doc.json"]

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(OSError):
            atomic_write(tmp_path / "missing" / "doc.json", "x")


class TestConversion:
    """Test Document <-> stored records."""

    def test_document_to_stored_keeps_ids_and_order(self):
        document = Document.from_pairs([("b1", "one"), ("b2", "")])
        assert document_to_stored(document) == [StoredBlock(id="b1", content="one"), StoredBlock(id="b2", content="")]

    def test_stored_to_document(self):
        document = stored_to_document(BLOCKS)
        assert [(b.block_id, b.content) for b in document] == [("b1", "# Groceries"), ("b2", "- Buy milk")]

    def test_empty_stored_list_becomes_single_empty_block(self):
        document = stored_to_document([])
        assert len(document) == 1
        assert document.blocks[0].is_empty


class TestInMemoryDocumentStore:
    """Test dict-backed store."""

    def test_save_and_load(self):
        store = InMemoryDocumentStore()
        store.save("groceries", BLOCKS)

        assert store.load("groceries") == BLOCKS
        assert store.save_count == 1

    def test_load_missing(self):
        assert InMemoryDocumentStore().load("nothing") is None


class TestFileDocumentStore:
    """Test JSON-file-backed store."""

    def test_save_creates_directory_and_file(self, tmp_path):
        store = FileDocumentStore(tmp_path / "docs")

        store.save("groceries", BLOCKS)

        data = json.loads((tmp_path / "docs" / "groceries.json").read_text())
        assert data["document_id"] == "groceries"
        assert data["blocks"] == [
            {"id": "b1", "content": "# Groceries"},
            {"id": "b2", "content": "- Buy milk"},
        ]

    def test_save_then_load(self, tmp_path):
        store = FileDocumentStore(tmp_path)
        store.save("groceries", BLOCKS)

        assert FileDocumentStore(tmp_path).load("groceries") == BLOCKS

    def test_save_overwrites(self, tmp_path):
        store = FileDocumentStore(tmp_path)
        store.save("groceries", BLOCKS)
        store.save("groceries", BLOCKS[:1])

        assert store.load("groceries") == BLOCKS[:1]

    def test_load_missing_returns_none(self, tmp_path):
        assert FileDocumentStore(tmp_path).load("missing") is None

    @pytest.mark.parametrize("document_id", ["../escape", "", ".hidden", "a/b", "x" * 200])
    def test_invalid_document_id(self, tmp_path, document_id):
        store = FileDocumentStore(tmp_path)

        with pytest.raises(PersistenceError, match="Invalid document id"):
            store.save(document_id, BLOCKS)
        with pytest.raises(PersistenceError):
            store.load(document_id)

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "broken.json").write_text("{not json")

        with pytest.raises(PersistenceError) as exc_info:
            FileDocumentStore(tmp_path).load("broken")

        assert exc_info.value.document_id == "broken"
        assert exc_info.value.message == "Stored document is corrupt"

    def test_wrong_shape_is_corrupt(self, tmp_path):
        (tmp_path / "shape.json").write_text('{"document_id": "shape", "blocks": [{"content": "no id"}]}')

        with pytest.raises(PersistenceError, match="corrupt"):
            FileDocumentStore(tmp_path).load("shape")

    def test_unwritable_root(self, tmp_path):
        """Test that I/O failures surface as PersistenceError."""
        root = tmp_path / "not-a-directory"
        root.write_text("occupied")

        with pytest.raises(PersistenceError, match="Failed to write document"):
            FileDocumentStore(root).save("groceries", BLOCKS)

    def test_list_documents(self, tmp_path):
        store = FileDocumentStore(tmp_path)
        assert store.list_documents() == []

        store.save("work", BLOCKS)
        store.save("groceries", BLOCKS)
        (tmp_path / "notes.txt").write_text("ignored")

        assert store.list_documents() == ["groceries", "work"]

    def test_list_documents_missing_root(self, tmp_path):
        assert FileDocumentStore(tmp_path / "nowhere").list_documents() == []
