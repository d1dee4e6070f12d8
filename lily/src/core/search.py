"""
Lily - Similarity Search Gateway
=================================
Runs one similarity query against the document store and converts the
rows into ``RetrievedPassage`` objects.

The threshold and the result cap are enforced by the store.  Passages
keep the store's order (descending similarity, store-native tie order);
nothing is re-filtered by score or re-sorted here.  Rows without text
are dropped so malformed data never reaches the prompt.

An empty result is ``Ok([])``.  Store errors and timeouts come back as a
``Failure`` tagged ``SearchUnavailable``.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from lily.config.prompt_templates import UNKNOWN_SOURCE_LABEL
from lily.config.settings import settings
from lily.src.core.models import RetrievedPassage
from lily.src.core.result import Failure, FailureKind, Ok
from lily.src.utils.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class SimilarityStore(Protocol):
    """Blocking vector store, e.g. ``LilyVectorStore``."""

    def search(self, query_vector: list[float], threshold: float, limit: int) -> list[dict[str, Any]]: ...


def _source_label(row: Mapping[str, Any]) -> str:
    label = row.get("filename")
    if not label:
        metadata = row.get("metadata")
        if isinstance(metadata, Mapping):
            label = metadata.get("filename")
    return str(label) if label else UNKNOWN_SOURCE_LABEL


def _score(row: Mapping[str, Any]) -> float:
    if row.get("similarity") is not None:
        return float(row["similarity"])
    # cosine distance
    return 1.0 - float(row.get("_distance", 1.0))


def row_to_passage(row: Mapping[str, Any]) -> RetrievedPassage | None:
    """Convert one store row, or return ``None`` when it carries no text."""
    content = row.get("content")
    if not isinstance(content, str) or not content.strip():
        return None
    return RetrievedPassage(content=content, source_label=_source_label(row), score=_score(row))


class SimilaritySearchGateway:
    """
    Async facade over a blocking ``SimilarityStore``.

    Parameters
    ----------
    store
        The vector store to query.
    timeout
        Optional deadline in seconds for one search.
    """

    __slots__ = ("_store", "_timeout")

    def __init__(self, store: SimilarityStore, timeout: float | None = settings.SEARCH_TIMEOUT_SECONDS) -> None:
        self._store = store
        self._timeout = timeout


    async def search(self, vector: list[float], threshold: float = settings.MATCH_THRESHOLD, limit: int = settings.MATCH_COUNT) -> Ok[list[RetrievedPassage]] | Failure:
        """
        Query the store with *vector*.

        Returns
        -------
        Ok[list[RetrievedPassage]] | Failure
            Passages in store order (possibly empty), or ``SearchUnavailable``.
        """
        t_start = time.perf_counter()
        try:
            rows = await asyncio.wait_for(asyncio.to_thread(self._store.search, vector, threshold, limit), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            if self._timeout is None:
                logger.error("[SEARCH] Vector search error: %r", exc)
                return Failure(FailureKind.SEARCH_UNAVAILABLE, "Vector search error: request timed out")
            logger.error("[SEARCH] Vector search timed out after %.1fs.", self._timeout)
            return Failure(FailureKind.SEARCH_UNAVAILABLE, f"Vector search timed out after {self._timeout}s")
        except Exception as exc:
            logger.error("[SEARCH] Vector search error: %s", exc)
            return Failure(FailureKind.SEARCH_UNAVAILABLE, f"Vector search error: {exc}")

        passages: list[RetrievedPassage] = []
        for row in rows or []:
            passage = row_to_passage(row)
            if passage is None:
                logger.warning("[SEARCH] Dropping row without content.")
                continue
            passages.append(passage)

        search_ms = (time.perf_counter() - t_start) * 1000
        if passages:
            logger.info("[SEARCH] Found %d relevant document(s) in %.1fms.", len(passages), search_ms)
        else:
            logger.info("[SEARCH] No relevant documents found (%.1fms).", search_ms)
        return Ok(passages)
