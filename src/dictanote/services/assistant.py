"""AI collaborator that classifies utterances into document actions.

The collaborator is the boundary to the language model: it builds prompts,
calls the LLM, and turns whatever comes back into a typed AIResponse. All
transport and model failures surface as CollaboratorError.
"""

import json
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from dictanote.llm.prompts import (
    CONTINUATION_SYSTEM_PROMPT,
    DOCUMENT_SYSTEM_PROMPT,
    INLINE_SYSTEM_PROMPT,
    build_continuation_prompt,
    build_document_prompt,
    build_inline_prompt,
)
from dictanote.models.ai_response import (
    ReviewImmediateResponse,
    ReviewResponse,
    parse_ai_response,
)
from dictanote.models.config import EditorConfig
from dictanote.services.diff import ChangeSize, classify_change
from dictanote.services.exceptions import CollaboratorError
from dictanote.services.llm_client import LLMClient
from dictanote.utils.logging import get_logger


logger = get_logger(__name__)

# Continuations are only predicted for contexts at least this long
MIN_CONTINUATION_CONTEXT = 5

# Longer predictions are treated as the model rambling and dropped
MAX_CONTINUATION_LENGTH = 100


class AssistantRequest(BaseModel):
    """What the core sends to the AI collaborator."""

    utterance: str = Field(
        ...,
        description="What the user typed (or the transcription of what they said)"
    )

    context: Optional[str] = Field(
        default=None,
        description="Focused block text for inline requests, otherwise the document text"
    )

    conversation: Optional[str] = Field(
        default=None,
        description="Clarification transcript while the user is answering a question"
    )

    inline: bool = Field(
        default=False,
        description="Single-block scope: the collaborator must not ask questions"
    )

    request_id: Optional[str] = Field(
        default=None,
        description="Identifier used in logs"
    )

    model_config = {"frozen": True}


class AICollaborator(ABC):
    """Abstract interface for the AI collaborator consumed by EditSession."""

    @abstractmethod
    async def respond(self, request: AssistantRequest):
        """Classify an utterance into an AIResponse.

        Args:
            request: Utterance with its context

        Returns:
            One of AppendResponse, ReviewResponse, ReviewImmediateResponse, InquireResponse

        Raises:
            CollaboratorError: If the collaborator cannot produce a response
        """
        pass

    async def predict_continuation(self, context: str) -> str:
        """Predict the user's next sentence (empty string if unsupported)."""
        return ""


class LLMAssistant(AICollaborator):
    """AI collaborator backed by an OpenAI-compatible or Ollama LLM."""

    def __init__(self, llm_client: LLMClient, editor_config: Optional[EditorConfig] = None):
        """
        Initialize assistant.

        Args:
            llm_client: Client for the chat completion API
            editor_config: Threshold policy used to pre-classify inline rewrites
        """
        self.llm_client = llm_client
        self.editor_config = editor_config or EditorConfig()

    async def respond(self, request: AssistantRequest):
        """
        Classify an utterance via the LLM.

        Inline requests (single-block scope, not answering a question) use
        the inline prompt; a review that changes at most the threshold number
        of characters is tagged review_immediate.

        Args:
            request: Utterance with its context

        Returns:
            Typed AIResponse (malformed model output becomes an append of the raw text)

        Raises:
            CollaboratorError: On network, HTTP or response-shape failures
        """
        inline = request.inline and not request.conversation and bool(request.context)
        llm_config = self.llm_client.config

        if inline:
            system_prompt = INLINE_SYSTEM_PROMPT
            prompt = build_inline_prompt(request.utterance, request.context or "")
            temperature = llm_config.inline_temperature
        else:
            system_prompt = DOCUMENT_SYSTEM_PROMPT
            prompt = build_document_prompt(request.utterance, request.context, request.conversation)
            temperature = llm_config.temperature

        logger.info(
            "assistant_request",
            request_id=request.request_id,
            mode="inline" if inline else ("conversation" if request.conversation else "document"),
            utterance_length=len(request.utterance),
        )

        try:
            raw = await self.llm_client.complete_json(
                prompt=prompt,
                system_prompt=system_prompt,
                temperature=temperature,
                request_id=request.request_id,
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(
                "assistant_request_failed",
                request_id=request.request_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise CollaboratorError(f"AI request failed: {e}") from e

        response = parse_ai_response(raw, utterance=request.utterance)

        if inline and isinstance(response, ReviewResponse):
            size, changed = classify_change(
                request.context or "",
                response.content,
                self.editor_config.diff_threshold,
                inclusive=self.editor_config.threshold_inclusive,
            )
            logger.debug("assistant_inline_review", changed_chars=changed, size=size.value)
            if size == ChangeSize.SMALL:
                response = ReviewImmediateResponse(
                    content=response.content,
                    user_input=response.user_input,
                    thought=response.thought,
                )

        logger.info("assistant_response", request_id=request.request_id, response_type=response.type)
        return response

    async def predict_continuation(self, context: str) -> str:
        """
        Predict the next sentence after context (ghost text).

        Never raises: failures and implausible predictions yield "".

        Args:
            context: Text preceding the cursor

        Returns:
            Predicted continuation, or "" if none
        """
        if not context or len(context.strip()) < MIN_CONTINUATION_CONTEXT:
            return ""

        try:
            raw = await self.llm_client.complete_json(
                prompt=build_continuation_prompt(context),
                system_prompt=CONTINUATION_SYSTEM_PROMPT,
                temperature=0.7,
                max_retries=0,
            )
            data = json.loads(raw)
            prediction = str(data.get("prediction") or "").strip() if isinstance(data, dict) else ""
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("continuation_failed", error=str(e))
            return ""

        if len(prediction) > MAX_CONTINUATION_LENGTH:
            logger.debug("continuation_dropped", reason="too_long", length=len(prediction))
            return ""
        return prediction
