"""Interaction state models for AI requests."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from dictanote.utils.ids import generate_random_uuid


# Surface name for document-level interactions; block-level surfaces use the block id
GLOBAL_SURFACE = "global"


class InteractionState(str, Enum):
    """Lifecycle of one AI interaction on a surface."""

    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    RESOLVED = "resolved"


class RouteOutcome(str, Enum):
    """What the router did with a response."""

    APPENDED = "appended"
    APPLIED = "applied"
    STAGED = "staged"
    CLARIFYING = "clarifying"
    DISCARDED = "discarded"
    IGNORED = "ignored"


@dataclass
class InteractionRequest:
    """A prepared AI request, dispatched at most once.

    Attributes:
        surface: GLOBAL_SURFACE or the id of the block the request belongs to
        utterance: What the user typed or said
        focused_block_id: Block focused when the request was prepared
        request_id: Identifier used in logs
        state: Current lifecycle state
        cancelled: Set when the user cancels before dispatch
        abandoned: Set when the user navigates away while awaiting the response
    """

    surface: str
    utterance: str
    focused_block_id: Optional[str] = None
    request_id: str = field(default_factory=generate_random_uuid)
    state: InteractionState = InteractionState.IDLE
    cancelled: bool = False
    abandoned: bool = False


@dataclass
class InteractionResult:
    """Result of a dispatched interaction.

    Attributes:
        request: The request that was dispatched
        outcome: Routing outcome (None on collaborator failure)
        response: Parsed collaborator response (None on failure)
        error: Error message on collaborator failure
    """

    request: InteractionRequest
    outcome: Optional[RouteOutcome] = None
    response: Optional[object] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True when the collaborator produced a response."""
        return self.error is None
