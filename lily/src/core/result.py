"""
Lily - Pipeline Result Types
=============================
Value types that carry success and failure between pipeline stages.
Components return these instead of raising, so the orchestrator
decides between *degrade* and *terminate* by type, not by catching.

``Ok``
    Successful value plus any absorbed non-fatal failures.
``Failure``
    Tagged failure with a ``FailureKind``, a message and the upstream
    HTTP status when one is known.
``Degraded``
    Retrieval outcome meaning "continue without context".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FailureKind(str, Enum):
    """Failure taxonomy of the chat pipeline."""

    MISSING_MESSAGE = "MissingMessage"
    EMBEDDING_UNAVAILABLE = "EmbeddingUnavailable"
    SEARCH_UNAVAILABLE = "SearchUnavailable"
    GENERATION_FAILED = "GenerationFailed"
    EMPTY_GENERATION_RESULT = "EmptyGenerationResult"

    @property
    def fatal(self) -> bool:
        """Whether this kind ends the request with a user-visible error."""
        return self in _FATAL_KINDS

    @property
    def status_hint(self) -> int:
        """HTTP status the transport layer should answer with."""
        return _STATUS_HINTS.get(self, 500)


_FATAL_KINDS = frozenset({FailureKind.MISSING_MESSAGE, FailureKind.GENERATION_FAILED})

_STATUS_HINTS: dict[FailureKind, int] = {
    FailureKind.MISSING_MESSAGE: 400,
    FailureKind.GENERATION_FAILED: 500,
}


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    status: int | None = None

    @property
    def fatal(self) -> bool:
        return self.kind.fatal

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    warnings: tuple[Failure, ...] = ()


@dataclass(frozen=True)
class Degraded:
    reason: Failure
