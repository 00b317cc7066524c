"""Wire models for persisted documents."""

from pydantic import BaseModel, Field


class StoredBlock(BaseModel):
    """Minimal persisted form of a block."""

    id: str = Field(..., min_length=1, description="Block identifier")
    content: str = Field(default="", description="Block content")

    model_config = {"frozen": True}


class StoredDocument(BaseModel):
    """Persisted document: ordered list of blocks."""

    document_id: str = Field(..., description="Document identifier")
    blocks: list[StoredBlock] = Field(default_factory=list, description="Blocks in document order")
