"""Unit tests for AI response parsing."""

import pytest
from pydantic import ValidationError

from dictanote.models.ai_response import (
    DEFAULT_USER_INPUT,
    AppendResponse,
    InquireResponse,
    ReviewImmediateResponse,
    ReviewResponse,
    parse_ai_response,
)


class TestParseAIResponse:
    """Test parse_ai_response()."""

    @pytest.mark.parametrize("kind,expected", [
        ("append", AppendResponse),
        ("review", ReviewResponse),
        ("review_immediate", ReviewImmediateResponse),
        ("inquire", InquireResponse),
    ])
    def test_each_kind(self, kind, expected):
        response = parse_ai_response(f'{{"type": "{kind}", "content": "text", "user_input": "said"}}')
        assert isinstance(response, expected)
        assert response.content == "text"
        assert response.user_input == "said"

    def test_accepts_camel_case_echo(self):
        response = parse_ai_response({"type": "append", "content": "x", "userInput": "and eggs"})
        assert response.user_input == "and eggs"

    def test_accepts_transcription_echo(self):
        response = parse_ai_response({"type": "append", "content": "x", "transcription": "heard"})
        assert response.user_input == "heard"

    def test_missing_echo_uses_utterance(self):
        response = parse_ai_response('{"type": "inquire", "content": "Where to?"}', utterance="plan a trip")
        assert response.user_input == "plan a trip"

    def test_missing_echo_without_utterance_uses_placeholder(self):
        response = parse_ai_response('{"type": "append", "content": "x"}')
        assert response.user_input == DEFAULT_USER_INPUT

    def test_strips_code_fence(self):
        payload = '```json\n{"type": "review", "content": "- Meeting at 4pm"}\n```'
        response = parse_ai_response(payload)
        assert isinstance(response, ReviewResponse)
        assert response.content == "- Meeting at 4pm"

    def test_keeps_thought(self):
        response = parse_ai_response({"type": "append", "content": "x", "thought": "has a time"})
        assert response.thought == "has a time"


class TestMalformedPayloads:
    """Malformed payloads fall back to appending literal text."""

    def test_invalid_json_becomes_append_of_raw_text(self):
        response = parse_ai_response("Sure! Here is your note: - Buy eggs", utterance="eggs")
        assert isinstance(response, AppendResponse)
        assert response.content == "Sure! Here is your note: - Buy eggs"
        assert response.user_input == "eggs"

    def test_unknown_type_keeps_content(self):
        response = parse_ai_response('{"type": "summarize", "content": "- Buy eggs"}')
        assert isinstance(response, AppendResponse)
        assert response.content == "- Buy eggs"

    def test_missing_content_becomes_raw_payload(self):
        raw = '{"type": "review", "user_input": "fix it"}'
        response = parse_ai_response(raw)
        assert isinstance(response, AppendResponse)
        assert response.content == raw
        assert response.user_input == "fix it"

    def test_non_object_json(self):
        response = parse_ai_response('["a", "b"]')
        assert isinstance(response, AppendResponse)
        assert response.content == '["a", "b"]'


class TestResponseModels:
    """Test response model invariants."""

    def test_frozen(self):
        response = AppendResponse(content="x")
        with pytest.raises(ValidationError):
            response.content = "y"

    def test_type_tag_defaults(self):
        assert ReviewImmediateResponse(content="x").type == "review_immediate"
