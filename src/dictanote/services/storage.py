"""Document persistence: pluggable key-value stores keyed by document id."""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from dictanote.models.document import Document
from dictanote.models.stored_document import StoredBlock, StoredDocument
from dictanote.services.exceptions import PersistenceError
from dictanote.utils.ids import is_valid_document_id
from dictanote.utils.logging import get_logger


logger = get_logger(__name__)


def document_to_stored(document: Document) -> list[StoredBlock]:
    """Serialize a document into ordered {id, content} records."""
    return [StoredBlock(id=block.block_id, content=block.content) for block in document]


def stored_to_document(blocks: list[StoredBlock]) -> Document:
    """Rebuild a document from stored records (empty list -> one empty block)."""
    return Document.from_pairs((block.id, block.content) for block in blocks)


def atomic_write(path: Path, content: str) -> None:
    """
    Atomically write content to file with temp-file-rename pattern.

    The content is written to a temporary file in the same directory,
    fsynced, then renamed over the target, so readers never observe a
    partially written document.

    Args:
        path: Target file path
        content: Content to write

    Raises:
        OSError: On file I/O errors
    """
    temp_path = path.parent / f".{path.name}.tmp.{os.getpid()}"

    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        # Atomic on POSIX even if the target exists
        temp_path.replace(path)

        logger.debug("atomic_write_success", path=str(path), size=len(content))

    except OSError as e:
        if temp_path.exists():
            temp_path.unlink()
        logger.error("atomic_write_failed", path=str(path), error=str(e))
        raise


class DocumentStore(ABC):
    """Abstract persistence collaborator."""

    @abstractmethod
    def save(self, document_id: str, blocks: list[StoredBlock]) -> None:
        """
        Persist the ordered blocks of a document.

        Raises:
            PersistenceError: If the document could not be written
        """
        pass

    @abstractmethod
    def load(self, document_id: str) -> Optional[list[StoredBlock]]:
        """
        Load the ordered blocks of a document.

        Returns:
            Stored blocks, or None if the document does not exist

        Raises:
            PersistenceError: If the stored document is unreadable
        """
        pass


class InMemoryDocumentStore(DocumentStore):
    """Store that keeps documents in a dict (tests and throwaway sessions)."""

    def __init__(self):
        self._documents: dict[str, list[StoredBlock]] = {}
        self.save_count = 0

    def save(self, document_id: str, blocks: list[StoredBlock]) -> None:
        self._documents[document_id] = list(blocks)
        self.save_count += 1

    def load(self, document_id: str) -> Optional[list[StoredBlock]]:
        blocks = self._documents.get(document_id)
        return list(blocks) if blocks is not None else None


class FileDocumentStore(DocumentStore):
    """
    Store one JSON file per document under a root directory.

    File format:
        {"document_id": "groceries", "blocks": [{"id": "...", "content": "..."}]}
    """

    def __init__(self, root: Path):
        """
        Initialize store.

        Args:
            root: Directory holding the document files (created on first save)
        """
        self.root = Path(root).expanduser()

    def path_for(self, document_id: str) -> Path:
        """
        Resolve the file path for a document.

        Raises:
            PersistenceError: If the id is not filename-safe
        """
        if not is_valid_document_id(document_id):
            raise PersistenceError(document_id, "Invalid document id")
        return self.root / f"{document_id}.json"

    def list_documents(self) -> list[str]:
        """Return the ids of all stored documents, sorted."""
        if not self.root.is_dir():
            return []
        return sorted(path.stem for path in self.root.glob("*.json") if is_valid_document_id(path.stem))

    def save(self, document_id: str, blocks: list[StoredBlock]) -> None:
        path = self.path_for(document_id)
        stored = StoredDocument(document_id=document_id, blocks=blocks)

        try:
            self.root.mkdir(parents=True, exist_ok=True)
            atomic_write(path, stored.model_dump_json(indent=2))
        except OSError as e:
            raise PersistenceError(document_id, f"Failed to write document ({e})") from e

        logger.info("document_saved", document_id=document_id, block_count=len(blocks))

    def load(self, document_id: str) -> Optional[list[StoredBlock]]:
        path = self.path_for(document_id)
        if not path.exists():
            logger.debug("document_not_found", document_id=document_id, path=str(path))
            return None

        try:
            stored = StoredDocument.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise PersistenceError(document_id, f"Failed to read document ({e})") from e
        except (ValidationError, json.JSONDecodeError) as e:
            logger.error("document_corrupt", document_id=document_id, path=str(path), error=str(e))
            raise PersistenceError(document_id, "Stored document is corrupt") from e

        logger.info("document_loaded_from_disk", document_id=document_id, block_count=len(stored.blocks))
        return stored.blocks
