"""Identifier generation utilities for Dictanote."""

import re
import uuid


# Document ids double as file names in the file-backed store
_DOCUMENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,127}$")


def generate_block_id() -> str:
    """
    Generate a random, opaque block identifier.

    Block ids are stable for the life of a block: updates keep the id,
    merges keep the previous block's id, and undo/redo restore the ids
    captured in the snapshot.

    Returns:
        Identifier string such as "block-f47ac10b58cc4372a5670e02b2c3d479"
    """
    return f"block-{uuid.uuid4().hex}"


def generate_random_uuid() -> str:
    """
    Generate random UUID v4.

    Returns:
        UUID string in standard format
    """
    return str(uuid.uuid4())


def is_valid_document_id(document_id: str) -> bool:
    """Check that a document id is safe to use as a file name.

    Args:
        document_id: Candidate document identifier

    Returns:
        True if the id only contains letters, digits, '_', '-' and '.',
        starts with a letter or digit, and is at most 128 characters
    """
    return bool(_DOCUMENT_ID_PATTERN.match(document_id))
