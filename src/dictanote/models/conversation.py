"""ConversationTurn model for multi-turn clarification."""

from datetime import datetime, timezone
from pydantic import BaseModel, Field
from typing import Literal


class ConversationTurn(BaseModel):
    """One message in the clarification conversation."""

    role: Literal["user", "assistant"] = Field(
        ...,
        description="Who said it"
    )

    text: str = Field(
        ...,
        description="Echoed user utterance or the assistant's clarifying question"
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the turn was recorded (UTC)"
    )

    model_config = {"frozen": True}
