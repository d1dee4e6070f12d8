"""Tests for lily.src.core.generation."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from google.genai import errors as genai_errors

from lily.config.prompt_templates import FALLBACK_REPLY
from lily.src.core.generation import GenerationClient, extract_text
from lily.src.core.models import ChatTurn
from lily.src.core.result import Failure, FailureKind, Ok
from tests.conftest import FakeGenAIClient, make_response

CONVERSATION = [ChatTurn(role="model", text="earlier"), ChatTurn(role="user", text="Hello")]


class SlowGenAIClient(FakeGenAIClient):
    def __init__(self) -> None:
        super().__init__(make_response("late"))

        async def slow(**kwargs: Any) -> Any:
            await asyncio.sleep(1)
            return self.models.response

        self.models.generate_content = slow  # type: ignore[method-assign]


class TestExtractText:
    def test_first_part_text(self) -> None:
        assert extract_text(make_response("hi")) == "hi"

    def test_no_parts(self) -> None:
        assert extract_text(make_response(None)) is None

    def test_no_candidates(self) -> None:
        assert extract_text(object()) is None

    def test_empty_text(self) -> None:
        assert extract_text(make_response("")) is None


class TestGenerationClient:
    @pytest.mark.asyncio
    async def test_reply_and_request_shape(self) -> None:
        client = FakeGenAIClient(make_response("你好"))
        outcome = await GenerationClient(client, default_model="gemini-default").generate(CONVERSATION, "persona", "gemini-custom")

        assert isinstance(outcome, Ok)
        assert outcome.value == "你好"
        assert outcome.warnings == ()

        call = client.calls[0]
        assert call["model"] == "gemini-custom"
        assert [c.role for c in call["contents"]] == ["model", "user"]
        assert call["contents"][-1].parts[0].text == "Hello"
        config = call["config"]
        assert config.temperature == pytest.approx(0.9)
        assert config.top_k == pytest.approx(40)
        assert config.top_p == pytest.approx(0.95)
        assert config.max_output_tokens == 2048

    @pytest.mark.asyncio
    @pytest.mark.parametrize("model_name", [None, ""])
    async def test_default_model_when_none_given(self, model_name: str | None) -> None:
        client = FakeGenAIClient(make_response("ok"))
        await GenerationClient(client, default_model="gemini-default").generate(CONVERSATION, "persona", model_name)
        assert client.calls[0]["model"] == "gemini-default"

    @pytest.mark.asyncio
    async def test_api_error_carries_status(self) -> None:
        exc = genai_errors.ServerError(503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})
        outcome = await GenerationClient(FakeGenAIClient(exc=exc)).generate(CONVERSATION, "persona")
        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.GENERATION_FAILED
        assert outcome.status == 503
        assert outcome.message == "Gemini API error: 503"

    @pytest.mark.asyncio
    async def test_transport_error_is_failure(self) -> None:
        outcome = await GenerationClient(FakeGenAIClient(exc=ConnectionError("reset"))).generate(CONVERSATION, "persona")
        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.GENERATION_FAILED
        assert outcome.status is None
        assert "reset" not in outcome.message

    @pytest.mark.asyncio
    async def test_empty_result_uses_fallback(self) -> None:
        outcome = await GenerationClient(FakeGenAIClient(make_response(None))).generate(CONVERSATION, "persona")
        assert isinstance(outcome, Ok)
        assert outcome.value == FALLBACK_REPLY
        assert [w.kind for w in outcome.warnings] == [FailureKind.EMPTY_GENERATION_RESULT]

    @pytest.mark.asyncio
    async def test_timeout_is_failure(self) -> None:
        outcome = await GenerationClient(SlowGenAIClient(), timeout=0.01).generate(CONVERSATION, "persona")
        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.GENERATION_FAILED

    @pytest.mark.asyncio
    async def test_transport_timeout_without_deadline(self) -> None:
        outcome = await GenerationClient(FakeGenAIClient(exc=TimeoutError()), timeout=None).generate(CONVERSATION, "persona")
        assert isinstance(outcome, Failure)
        assert outcome.kind is FailureKind.GENERATION_FAILED
        assert outcome.message == "Gemini API request failed"
