"""Shared fixtures and fakes for Lily tests."""

from __future__ import annotations

import os

# Settings are loaded at import time; give them a key before any lily import.
os.environ.setdefault("GOOGLE_API_KEY", "test-key")

from typing import Any

import pytest
from google.genai import types

from lily.src.core.embedding import EmbeddingClient
from lily.src.core.generation import GenerationClient
from lily.src.core.rag_engine import ChatPipeline
from lily.src.core.search import SimilaritySearchGateway


class FakeEmbedder:
    """Embedder returning a fixed vector, or raising ``exc``."""

    def __init__(self, vector: list[float] | None = None, exc: Exception | None = None) -> None:
        self.vector = vector if vector is not None else [0.1, 0.2, 0.3]
        self.exc = exc
        self.calls: list[str] = []

    async def aembed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.exc is not None:
            raise self.exc
        return self.vector


class FakeStore:
    """In-memory similarity store.

    Rows carry a ``similarity``; like the real store, rows below the
    threshold are excluded (a row exactly at it is kept) and at most
    ``limit`` rows are returned, in the order they were given.
    """

    def __init__(self, rows: list[dict[str, Any]] | None = None, exc: Exception | None = None) -> None:
        self.rows = rows or []
        self.exc = exc
        self.calls: list[tuple[list[float], float, int]] = []

    def search(self, query_vector: list[float], threshold: float, limit: int) -> list[dict[str, Any]]:
        self.calls.append((query_vector, threshold, limit))
        if self.exc is not None:
            raise self.exc
        return [row for row in self.rows if row["similarity"] >= threshold][:limit]


class FakeModels:
    def __init__(self, response: Any = None, exc: Exception | None = None) -> None:
        self.response = response
        self.exc = exc
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        return self.response


class FakeAio:
    def __init__(self, models: FakeModels) -> None:
        self.models = models


class FakeGenAIClient:
    """Stand-in for ``google.genai.Client`` exposing ``aio.models.generate_content``."""

    def __init__(self, response: Any = None, exc: Exception | None = None) -> None:
        self.models = FakeModels(response, exc)
        self.aio = FakeAio(self.models)

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self.models.calls


def make_response(text: str | None) -> types.GenerateContentResponse:
    """Gemini response whose first candidate holds *text* (or no parts)."""
    parts = [types.Part(text=text)] if text is not None else []
    return types.GenerateContentResponse(candidates=[types.Candidate(content=types.Content(role="model", parts=parts))])


def make_pipeline(embedder: FakeEmbedder | None = None, store: FakeStore | None = None, genai_client: FakeGenAIClient | None = None) -> ChatPipeline:
    return ChatPipeline(
        embedding_client=EmbeddingClient(embedder or FakeEmbedder(), dimensions=None, timeout=None),
        search_gateway=SimilaritySearchGateway(store or FakeStore(), timeout=None),
        generation_client=GenerationClient(genai_client or FakeGenAIClient(make_response("好的！")), default_model="gemini-test", timeout=None),
        threshold=0.5,
        limit=5,
    )


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def restore_log_levels(monkeypatch: pytest.MonkeyPatch):
    """Undo ``set_level()`` calls made by a test."""
    from lily.src.utils import logger as logger_module

    saved = {name: lg.level for name, lg in logger_module._loggers.items()}
    monkeypatch.setattr(logger_module, "_level_override", None)
    yield logger_module
    for name, level in saved.items():
        logger_module._loggers[name].setLevel(level)
