"""Block-structured document model.

A document is an ordered list of blocks (roughly paragraphs). Its canonical
text form joins block contents with a blank line; parsing splits on runs of
blank lines.

IMPORTANT: Round-trip (parse -> render -> parse) only holds when no block's
content itself contains a blank-line run. Such content is split into several
blocks on re-parse.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from dictanote.utils.ids import generate_block_id


BLOCK_SEPARATOR = "\n\n"

# A newline followed by one or more whitespace-only lines
_BLANK_LINE_RUN = re.compile(r"\n(?:[ \t]*\n)+")


@dataclass
class Block:
    """Single addressable unit of document content.

    Attributes:
        content: Markdown text of the block
        block_id: Opaque identifier, stable across updates, undo and redo
    """

    content: str = ""
    block_id: str = field(default_factory=generate_block_id)

    @property
    def is_empty(self) -> bool:
        """Whether the block holds only whitespace (derived from content)."""
        return self.content.strip() == ""


@dataclass(frozen=True)
class Snapshot:
    """Immutable copy of a document's block sequence.

    Two snapshots are equal when they hold the same blocks (ids and content)
    in the same order.

    Attributes:
        blocks: Tuple of (block_id, content) pairs in document order
    """

    blocks: tuple[tuple[str, str], ...]

    def render(self) -> str:
        """Serialize the snapshot the same way Document.render() does."""
        return BLOCK_SEPARATOR.join(content for _, content in self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)


@dataclass(frozen=True)
class MergeResult:
    """Where editing focus should land after merging a block into its predecessor.

    Attributes:
        previous_block_id: The block that absorbed the merged content
        cursor_position: Length of the previous block's content before the merge
    """

    previous_block_id: str
    cursor_position: int


def split_blocks(text: str) -> list[str]:
    """Split text into block contents.

    Blank input yields a single empty fragment. Otherwise the text is split on
    runs of blank lines and whitespace-only fragments are dropped; if nothing
    survives, a single empty fragment is returned.

    Args:
        text: Text to split

    Returns:
        Non-empty list of block contents

    Examples:
        >>> split_blocks("- Buy milk\\n\\n\\n- Buy eggs")
        ['- Buy milk', '- Buy eggs']
        >>> split_blocks("   ")
        ['']
    """
    normalized = text.replace("\r\n", "\n")
    if not normalized.strip():
        return [""]

    parts = [part for part in _BLANK_LINE_RUN.split(normalized) if part.strip()]
    if not parts:
        return [""]
    return parts


class Document:
    """Ordered, never-empty sequence of blocks.

    All operations mutate the document in place. None of them raise for
    unknown block ids: they return None (or False) and leave the document
    unchanged.
    """

    def __init__(self, blocks: Optional[Iterable[Block]] = None):
        """Initialize document.

        Args:
            blocks: Initial blocks. An empty or missing sequence becomes a
                single empty block.
        """
        self._blocks: list[Block] = list(blocks or [])
        if not self._blocks:
            self._blocks = [Block()]

    @classmethod
    def parse(cls, text: str) -> "Document":
        """Parse text into a document (one block per blank-line separated fragment).

        Args:
            text: Document text

        Returns:
            Parsed Document with freshly generated block ids
        """
        return cls(Block(content=part) for part in split_blocks(text))

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> "Document":
        """Build a document from (block_id, content) pairs, keeping the ids.

        Args:
            pairs: Persisted or snapshotted blocks in document order

        Returns:
            Document whose blocks carry the given ids
        """
        return cls(Block(content=content, block_id=block_id) for block_id, content in pairs)

    @property
    def blocks(self) -> tuple[Block, ...]:
        """Blocks in document order (read-only view)."""
        return tuple(self._blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(tuple(self._blocks))

    def render(self) -> str:
        """Serialize to text by joining block contents with a blank line."""
        return BLOCK_SEPARATOR.join(block.content for block in self._blocks)

    def get(self, block_id: str) -> Optional[Block]:
        """Find a block by id.

        Args:
            block_id: Block identifier

        Returns:
            The block, or None if no block has that id
        """
        for block in self._blocks:
            if block.block_id == block_id:
                return block
        return None

    def index_of(self, block_id: str) -> int:
        """Position of a block in the document.

        Args:
            block_id: Block identifier

        Returns:
            Zero-based index, or -1 if no block has that id
        """
        for index, block in enumerate(self._blocks):
            if block.block_id == block_id:
                return index
        return -1

    def append(self, content: str = "") -> Block:
        """Add a new block at the end of the document.

        Args:
            content: Content of the new block

        Returns:
            The new block
        """
        block = Block(content=content)
        self._blocks.append(block)
        return block

    def extend_from_text(self, text: str) -> list[Block]:
        """Parse text and append the resulting blocks.

        Blank text appends nothing.

        Args:
            text: Text to parse into blocks

        Returns:
            The appended blocks (possibly empty)
        """
        if not text.strip():
            return []
        new_blocks = [Block(content=part) for part in split_blocks(text)]
        self._blocks.extend(new_blocks)
        return new_blocks

    def insert_after(self, block_id: str, content: str = "") -> Optional[Block]:
        """Insert a new block immediately after the given block.

        Args:
            block_id: Id of the block to insert after
            content: Content of the new block

        Returns:
            The new block, or None if block_id was not found
        """
        index = self.index_of(block_id)
        if index == -1:
            return None

        block = Block(content=content)
        self._blocks.insert(index + 1, block)
        return block

    def update(self, block_id: str, content: str) -> Optional[Block]:
        """Replace a block's content.

        Args:
            block_id: Id of the block to update
            content: New content

        Returns:
            The updated block, or None if block_id was not found
        """
        block = self.get(block_id)
        if block is None:
            return None
        block.content = content
        return block

    def delete(self, block_id: str) -> bool:
        """Remove a block.

        Deleting the only remaining block replaces it with one fresh empty
        block, so the document is never empty.

        Args:
            block_id: Id of the block to delete

        Returns:
            True if a block was removed, False if block_id was not found
        """
        index = self.index_of(block_id)
        if index == -1:
            return False

        del self._blocks[index]
        if not self._blocks:
            self._blocks.append(Block())
        return True

    def merge_with_previous(self, block_id: str) -> Optional[MergeResult]:
        """Merge a block into the block before it.

        The previous block keeps its id and receives previous + current
        content; the current block is removed.

        Args:
            block_id: Id of the block to merge upward

        Returns:
            MergeResult with the former boundary as cursor position, or None
            if the block is the first one (or unknown). The document is left
            unchanged when None is returned.
        """
        index = self.index_of(block_id)
        if index <= 0:
            return None

        previous = self._blocks[index - 1]
        current = self._blocks[index]
        cursor_position = len(previous.content)

        previous.content = previous.content + current.content
        del self._blocks[index]

        return MergeResult(previous_block_id=previous.block_id, cursor_position=cursor_position)

    def replace_all(self, text: str) -> None:
        """Replace the whole document with the blocks parsed from text.

        Args:
            text: New document text
        """
        self._blocks = [Block(content=part) for part in split_blocks(text)]

    def snapshot(self) -> Snapshot:
        """Capture the current block sequence as an immutable Snapshot."""
        return Snapshot(blocks=tuple((block.block_id, block.content) for block in self._blocks))

    def restore(self, snapshot: Snapshot) -> None:
        """Replace the block sequence with the one captured in a snapshot.

        Args:
            snapshot: Snapshot to restore (ids are preserved)
        """
        self._blocks = [Block(content=content, block_id=block_id) for block_id, content in snapshot.blocks]
        if not self._blocks:
            self._blocks = [Block()]
