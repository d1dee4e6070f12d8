"""
Lily - RAG Engine
==================
Runs one chat turn through the retrieval-augmented pipeline.

Architecture
------------
``EmbeddingClient``
    Query text → vector (Gemini embeddings).
``SimilaritySearchGateway``
    Vector → passages above the similarity threshold (LanceDB).
``context.assemble`` / ``prompt_builder``
    Passages → context block → system prompt; history → conversation.
``GenerationClient``
    Conversation + system prompt → reply (Gemini).

``ChatPipeline`` sequences them:

    Start → Embedding → Searching → Assembling → Generating → Done
                 │            │
                 └────────────┴──→ SkipRetrieval ──→ Assembling

Any failure while embedding or searching is logged and the turn goes on
with an empty context block.  A generation failure ends the turn with an
error.  The pipeline holds no request state, so one instance can serve
concurrent requests.

Step deadlines come from the optional ``*_TIMEOUT_SECONDS`` settings; an
expired deadline is a failure of the step in flight.  Cancelling the task
that runs a turn is not turned into a failure: ``asyncio.CancelledError``
propagates to the caller unchanged.

Usage:
    from lily.src.core.rag_engine import ChatPipeline
    pipeline = ChatPipeline.from_settings()
    payload = await pipeline.handle_chat_request("What is the proposal deadline?", [])
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from pydantic import ValidationError

from lily.config.prompt_templates import MISSING_MESSAGE_ERROR
from lily.config.settings import settings
from lily.src.core.context import assemble
from lily.src.core.embedding import EmbeddingClient, build_embedder
from lily.src.core.generation import GenerationClient
from lily.src.core.models import ChatError, ChatReply, ChatTurn, RetrievedPassage
from lily.src.core.prompt_builder import build_conversation, build_system_prompt
from lily.src.core.result import Degraded, Failure, FailureKind, Ok
from lily.src.core.search import SimilaritySearchGateway
from lily.src.utils.logger import get_logger

logger = get_logger(__name__)

ChatPayload = dict[str, str | int]


class PipelineStage(str, Enum):
    START = "Start"
    EMBEDDING = "Embedding"
    SEARCHING = "Searching"
    SKIP_RETRIEVAL = "SkipRetrieval"
    ASSEMBLING = "Assembling"
    GENERATING = "Generating"
    DONE = "Done"


def coerce_history(chat_history: Iterable[ChatTurn | Mapping[str, Any]] | None) -> list[ChatTurn]:
    """
    Turn raw history items into ``ChatTurn`` objects, keeping their order.

    Items that are neither a ``ChatTurn`` nor a valid ``{role, content}``
    mapping are dropped with a warning.
    """
    turns: list[ChatTurn] = []
    for index, item in enumerate(chat_history or []):
        if isinstance(item, ChatTurn):
            turns.append(item)
            continue
        try:
            turns.append(ChatTurn.model_validate(item))
        except ValidationError:
            logger.warning("[RAG] Dropping malformed history item #%d.", index)
    return turns


class ChatPipeline:
    """
    Orchestrates embedding → search → prompt assembly → generation.

    Parameters
    ----------
    embedding_client
        Produces the query vector.
    search_gateway
        Runs the similarity search.
    generation_client
        Calls the generation model.
    threshold
        Minimum similarity handed to the store.
    limit
        Maximum passages handed to the store.
    """

    __slots__ = ("_embedding", "_search", "_generation", "_threshold", "_limit")

    def __init__(self, embedding_client: EmbeddingClient, search_gateway: SimilaritySearchGateway, generation_client: GenerationClient, threshold: float = settings.MATCH_THRESHOLD, limit: int = settings.MATCH_COUNT) -> None:
        self._embedding = embedding_client
        self._search = search_gateway
        self._generation = generation_client
        self._threshold = threshold
        self._limit = limit


    @classmethod
    def from_settings(cls) -> ChatPipeline:
        """Wire the production collaborators from ``settings``."""
        from lily.src.database.vector_store import LilyVectorStore

        return cls(embedding_client=EmbeddingClient(build_embedder()), search_gateway=SimilaritySearchGateway(LilyVectorStore()), generation_client=GenerationClient())

    # ══════════════════════════════════════════════════════════════════
    #  TRANSPORT-FACING ENTRY POINT
    # ══════════════════════════════════════════════════════════════════

    async def handle_chat_request(self, message: str | None, chat_history: Iterable[ChatTurn | Mapping[str, Any]] | None = None, model: str | None = None) -> ChatPayload:
        """
        Answer one chat message.

        Returns
        -------
        ChatPayload
            ``{"reply": str}`` on success, otherwise
            ``{"error": str, "statusHint": int}``.
        """
        result = await self.run(message, coerce_history(chat_history), model)

        if isinstance(result, Failure):
            return ChatError(error=result.message, status_hint=result.kind.status_hint).model_dump(by_alias=True)
        return ChatReply(reply=result.value).model_dump()


    async def run(self, message: str | None, history: list[ChatTurn], model: str | None = None) -> Ok[str] | Failure:
        """
        Full pipeline for one turn.

        Steps:
            1. Reject an empty message (``MissingMessage``).
            2. Retrieve passages; any failure degrades to no context.
            3. Assemble the context block and the system prompt.
            4. Build the conversation (history + message).
            5. Generate; a failure here is returned as-is.
        """
        t_start = time.perf_counter()
        path = [PipelineStage.START]

        # ── 1. Validate ───────────────────────────────────────────────
        if not isinstance(message, str) or not message.strip():
            logger.warning("[RAG] Rejected request without a message.")
            return Failure(FailureKind.MISSING_MESSAGE, MISSING_MESSAGE_ERROR)

        # ── 2. Retrieve ───────────────────────────────────────────────
        t_retrieval = time.perf_counter()
        retrieval = await self._retrieve(message, path)
        retrieval_ms = (time.perf_counter() - t_retrieval) * 1000

        warnings: tuple[Failure, ...] = ()
        passages: list[RetrievedPassage] = []
        if isinstance(retrieval, Degraded):
            logger.warning("[RAG] RAG process failed (continuing without context): %s", retrieval.reason)
            warnings = (retrieval.reason,)
            path.append(PipelineStage.SKIP_RETRIEVAL)
        else:
            passages = retrieval.value

        # ── 3. Assemble ───────────────────────────────────────────────
        path.append(PipelineStage.ASSEMBLING)
        context_block = assemble(passages)
        system_prompt = build_system_prompt(context_block)

        # ── 4. Conversation ───────────────────────────────────────────
        conversation = build_conversation(history, message)
        logger.debug("[RAG] Prompt ready: %d context passage(s), %d turn(s).", len(passages), len(conversation))

        # ── 5. Generate ───────────────────────────────────────────────
        path.append(PipelineStage.GENERATING)
        t_llm = time.perf_counter()
        generated = await self._generation.generate(conversation, system_prompt, model)
        llm_ms = (time.perf_counter() - t_llm) * 1000

        if isinstance(generated, Failure):
            logger.error("[RAG] Generation failed, aborting turn: %s", generated)
            logger.info("[RAG] Path: %s", " → ".join(stage.value for stage in path))
            return generated

        path.append(PipelineStage.DONE)
        total_ms = (time.perf_counter() - t_start) * 1000
        logger.info("[RAG] Path: %s", " → ".join(stage.value for stage in path))
        logger.info("[RAG] Pipeline total: %.1fms (retrieval=%.1f, llm=%.1f)", total_ms, retrieval_ms, llm_ms)
        return Ok(generated.value, warnings=warnings + generated.warnings)

    # ══════════════════════════════════════════════════════════════════
    #  RETRIEVAL
    # ══════════════════════════════════════════════════════════════════

    async def _retrieve(self, message: str, path: list[PipelineStage]) -> Ok[list[RetrievedPassage]] | Degraded:
        """Embed and search; either failure becomes ``Degraded``."""
        path.append(PipelineStage.EMBEDDING)
        logger.info("[RAG] Generating embedding for query: %s", message[:80])
        embedded = await self._embedding.embed(message)
        if isinstance(embedded, Failure):
            return Degraded(embedded)

        path.append(PipelineStage.SEARCHING)
        logger.info("[RAG] Searching knowledge base...")
        found = await self._search.search(embedded.value, threshold=self._threshold, limit=self._limit)
        if isinstance(found, Failure):
            return Degraded(found)
        return found
