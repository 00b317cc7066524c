"""Pydantic models for classified AI collaborator responses.

The collaborator classifies each utterance into one of four kinds. Every kind
carries a content payload and an echo of what the collaborator understood the
user to say (shown in the clarification conversation).
"""

import json
import re
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter, ValidationError

from dictanote.utils.logging import get_logger


logger = get_logger(__name__)

# Shown in place of the echoed utterance when the collaborator omits it
DEFAULT_USER_INPUT = "(voice input)"

_USER_INPUT_ALIASES = AliasChoices("user_input", "userInput", "transcription")

_CODE_FENCE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL)


class _ResponseBase(BaseModel):
    """Fields shared by every response kind."""

    content: str = Field(
        ...,
        description="Markdown to add (append), full rewritten text (review), or a question (inquire)"
    )

    user_input: str = Field(
        default=DEFAULT_USER_INPUT,
        validation_alias=_USER_INPUT_ALIASES,
        description="What the collaborator understood the user to say"
    )

    thought: Optional[str] = Field(
        default=None,
        description="Short reasoning from the collaborator (debugging only)"
    )

    model_config = {"frozen": True, "populate_by_name": True}


class AppendResponse(_ResponseBase):
    """New content to add to the target."""

    type: Literal["append"] = Field(default="append", description="Response kind")


class ReviewResponse(_ResponseBase):
    """Rewritten target text; staged for confirmation when the change is large."""

    type: Literal["review"] = Field(default="review", description="Response kind")


class ReviewImmediateResponse(_ResponseBase):
    """Rewritten target text pre-classified as small; always applied directly."""

    type: Literal["review_immediate"] = Field(default="review_immediate", description="Response kind")


class InquireResponse(_ResponseBase):
    """Clarifying question; the collaborator needs more information."""

    type: Literal["inquire"] = Field(default="inquire", description="Response kind")


AIResponse = Annotated[
    Union[AppendResponse, ReviewResponse, ReviewImmediateResponse, InquireResponse],
    Field(discriminator="type"),
]

_response_adapter: TypeAdapter = TypeAdapter(AIResponse)


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json fence that some models add."""
    match = _CODE_FENCE.match(text.strip())
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_ai_response(payload: Union[str, dict[str, Any]], utterance: Optional[str] = None):
    """
    Parse a raw collaborator payload into a typed AIResponse.

    Malformed payloads never fail the interaction: unparseable JSON, unknown
    kinds and missing required fields fall back to an AppendResponse holding
    the raw payload as literal text.

    Args:
        payload: Raw JSON text or already-decoded mapping
        utterance: The request utterance, echoed when the payload omits it

    Returns:
        One of AppendResponse, ReviewResponse, ReviewImmediateResponse, InquireResponse

    Example:
        >>> parse_ai_response('{"type": "append", "content": "- Buy eggs", "userInput": "and eggs"}')
        AppendResponse(content='- Buy eggs', user_input='and eggs', thought=None, type='append')
    """
    echo = utterance if utterance else DEFAULT_USER_INPUT

    if isinstance(payload, str):
        raw_text = payload
        try:
            data = json.loads(_strip_code_fence(payload))
        except json.JSONDecodeError as e:
            logger.warning("ai_payload_malformed", reason="invalid_json", error=str(e))
            return AppendResponse(content=raw_text.strip(), user_input=echo)
    else:
        data = payload
        raw_text = json.dumps(payload, ensure_ascii=False)

    if not isinstance(data, dict):
        logger.warning("ai_payload_malformed", reason="not_an_object")
        return AppendResponse(content=raw_text.strip(), user_input=echo)

    data = dict(data)
    echoed = next(
        (str(data[key]) for key in ("user_input", "userInput", "transcription") if data.get(key)),
        None,
    )
    if echoed is None:
        data["user_input"] = echo

    try:
        return _response_adapter.validate_python(data)
    except ValidationError as e:
        content = data.get("content")
        literal = content if isinstance(content, str) and content.strip() else raw_text.strip()
        logger.warning(
            "ai_payload_malformed",
            reason="validation_failed",
            response_type=data.get("type"),
            error=str(e),
        )
        return AppendResponse(content=literal, user_input=echoed or echo)
