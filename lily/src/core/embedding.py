"""
Lily - Embedding Client
========================
Turns the user query into a vector via the Gemini embedding service.

The embedding model is the one named in ``settings.EMBEDDING_MODEL``
and must be the model the document store was indexed with.  A mismatch
cannot be detected here; only the vector length is checked, and only
when ``settings.EMBEDDING_DIMENSIONS`` is set.

Failures (transport, API, timeout, bad vector) come back as a
``Failure`` tagged ``EmbeddingUnavailable``; nothing is raised.

Usage:
    from lily.src.core.embedding import EmbeddingClient, build_embedder
    client = EmbeddingClient(build_embedder())
    outcome = await client.embed("What is the proposal deadline?")
"""

from __future__ import annotations

import asyncio
import time
from typing import Protocol, runtime_checkable

from lily.config.settings import settings
from lily.src.core.result import Failure, FailureKind, Ok
from lily.src.utils.logger import get_logger

logger = get_logger(__name__)

EmbeddingVector = list[float]


@runtime_checkable
class Embedder(Protocol):
    """Anything that can embed a query asynchronously (LangChain ``Embeddings``)."""

    async def aembed_query(self, text: str) -> list[float]: ...


def build_embedder() -> Embedder:
    """Create the Gemini query embedder configured in ``settings``."""
    from langchain_google_genai import GoogleGenerativeAIEmbeddings

    embedder = GoogleGenerativeAIEmbeddings(model=settings.EMBEDDING_MODEL, google_api_key=settings.GOOGLE_API_KEY.get_secret_value(), task_type=settings.EMBEDDING_TASK_TYPE)
    logger.info("Embedder initialised: %s (task_type=%s)", settings.EMBEDDING_MODEL, settings.EMBEDDING_TASK_TYPE)
    return embedder


class EmbeddingClient:
    """
    Query-side embedding with failure capture.

    Parameters
    ----------
    embedder
        An ``Embedder``-compatible object.
    dimensions
        Expected vector length, or ``None`` to accept any length.
    timeout
        Optional deadline in seconds for the embedding call.
    """

    __slots__ = ("_embedder", "_dimensions", "_timeout")

    def __init__(self, embedder: Embedder, dimensions: int | None = settings.EMBEDDING_DIMENSIONS, timeout: float | None = settings.EMBEDDING_TIMEOUT_SECONDS) -> None:
        self._embedder = embedder
        self._dimensions = dimensions
        self._timeout = timeout


    async def embed(self, query: str) -> Ok[EmbeddingVector] | Failure:
        """
        Embed *query*.  The caller guarantees it is non-empty.

        Returns
        -------
        Ok[EmbeddingVector] | Failure
            The vector, or a ``Failure`` tagged ``EmbeddingUnavailable``.
        """
        t_start = time.perf_counter()
        try:
            vector = await asyncio.wait_for(self._embedder.aembed_query(query), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            if self._timeout is None:
                # Raised by the transport itself, not by our deadline.
                logger.error("[EMBED] Embedding API failed: %r", exc)
                return Failure(FailureKind.EMBEDDING_UNAVAILABLE, "Embedding API failed: request timed out")
            logger.error("[EMBED] Embedding timed out after %.1fs.", self._timeout)
            return Failure(FailureKind.EMBEDDING_UNAVAILABLE, f"Embedding timed out after {self._timeout}s")
        except Exception as exc:
            logger.error("[EMBED] Embedding API failed: %s", exc)
            return Failure(FailureKind.EMBEDDING_UNAVAILABLE, f"Embedding API failed: {exc}")

        if not vector:
            logger.error("[EMBED] Embedding API returned no values.")
            return Failure(FailureKind.EMBEDDING_UNAVAILABLE, "Embedding API returned no values")

        if self._dimensions is not None and len(vector) != self._dimensions:
            logger.error("[EMBED] Dimension mismatch: got %d, index expects %d.", len(vector), self._dimensions)
            return Failure(FailureKind.EMBEDDING_UNAVAILABLE, f"Embedding has {len(vector)} dimensions, expected {self._dimensions}")

        logger.debug("[EMBED] %d-dim vector in %.1fms", len(vector), (time.perf_counter() - t_start) * 1000)
        return Ok([float(v) for v in vector])
