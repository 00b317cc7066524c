"""PendingSuggestion model for staged AI rewrites."""

from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Optional

from dictanote.services.diff import generate_unified_diff


class SuggestionScope(str, Enum):
    """What a staged rewrite replaces when confirmed."""

    BLOCK = "block"
    DOCUMENT = "document"


class PendingSuggestion(BaseModel):
    """AI-proposed rewrite held outside the document awaiting confirm/reject."""

    scope: SuggestionScope = Field(
        ...,
        description="Single block or whole document"
    )

    block_id: Optional[str] = Field(
        default=None,
        description="Target block id (required for BLOCK scope, None for DOCUMENT scope)"
    )

    original: str = Field(
        ...,
        description="Target text at staging time"
    )

    proposed: str = Field(
        ...,
        description="Full replacement text proposed by the collaborator"
    )

    changed_chars: int = Field(
        default=0,
        ge=0,
        description="Changed-character count between original and proposed"
    )

    @model_validator(mode="after")
    def check_scope_target(self) -> "PendingSuggestion":
        """Block-scoped suggestions must name their block; document ones must not."""
        if self.scope == SuggestionScope.BLOCK and not self.block_id:
            raise ValueError("block_id is required for block-scoped suggestions")
        if self.scope == SuggestionScope.DOCUMENT and self.block_id is not None:
            raise ValueError("block_id must be None for document-scoped suggestions")
        return self

    def diff(self, context_lines: int = 3) -> str:
        """Unified diff from original to proposed text for review surfaces."""
        return generate_unified_diff(
            self.original,
            self.proposed,
            fromfile="current",
            tofile="suggested",
            context_lines=context_lines,
        )

    model_config = {"frozen": True}
