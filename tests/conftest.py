"""Shared test fixtures for all test modules."""

import asyncio
from typing import Optional

import pytest

from dictanote.models.config import EditorConfig, LLMConfig
from dictanote.services.assistant import AICollaborator, AssistantRequest


class ScriptedCollaborator(AICollaborator):
    """AI collaborator that replays canned responses.

    Each respond() call pops the next item: a response is returned, an
    exception is raised. If a gate is set, respond() waits on it first so
    tests can observe the AWAITING_RESPONSE state.
    """

    def __init__(self, responses, prediction: str = ""):
        self.responses = list(responses)
        self.requests: list[AssistantRequest] = []
        self.prediction = prediction
        self.gate: Optional[asyncio.Event] = None

    async def respond(self, request: AssistantRequest):
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def predict_continuation(self, context: str) -> str:
        return self.prediction


@pytest.fixture
def scripted_collaborator():
    """Factory for collaborators that replay the given responses in order."""

    def make(*responses, prediction: str = ""):
        return ScriptedCollaborator(responses, prediction=prediction)

    return make


@pytest.fixture
def llm_config():
    """Create test LLM configuration."""
    return LLMConfig(
        endpoint="https://api.test.com/v1",
        api_key="test-key",
        model="test-model",
    )


@pytest.fixture
def editor_config():
    """Default reconciliation policy (threshold 10, inclusive, depth 5)."""
    return EditorConfig()
