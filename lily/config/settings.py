"""
Lily - Centralized Configuration
=================================
Uses ``pydantic-settings`` (``BaseSettings``) to load *all* configuration
from environment variables and the project-level ``.env`` file.

Security
--------
- ``GOOGLE_API_KEY`` is typed as ``SecretStr`` and has **no default value**.
  If the key is missing at startup, Pydantic will raise a ``ValidationError``
  with a clear error message.  The raw value is never exposed in repr,
  logs, or tracebacks.

Retrieval Policy
----------------
``MATCH_THRESHOLD`` (0.5) and ``MATCH_COUNT`` (5) are the similarity
cut-off and result cap handed to the vector store.  They are
configuration defaults, not tuned values.

Embedding Dimensions
--------------------
The query embedding must have the same dimensionality as the vectors
stored at index time.  ``EMBEDDING_DIMENSIONS`` enables a local check of
that invariant; set it to an empty value to trust the service.

Timeouts
--------
The ``*_TIMEOUT_SECONDS`` fields are optional per-step deadlines.  An
expired deadline counts as a failure of the step in flight.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings.

    Every field is loaded from environment variables (or ``.env``).
    Fields *without* a default are **required**, the app will refuse
    to start until they are provided.

    Attributes
    ----------
    GOOGLE_API_KEY : SecretStr
        API key for Google AI Studio (Gemini).  **Required.**
        Access the raw value with ``settings.GOOGLE_API_KEY.get_secret_value()``.
    ENV : Literal["dev", "prod"]
        Environment mode controlling logging verbosity.
    LOG_LEVEL : str | None
        Explicit level name (``"INFO"``, ``"ERROR"`` ...) overriding the ENV default.
    EMBEDDING_MODEL : str
        Model identifier passed to ``GoogleGenerativeAIEmbeddings``.
        Must be the model used when the document store was indexed.
    EMBEDDING_TASK_TYPE : str
        Gemini embedding task type for query-side embeddings.
    EMBEDDING_DIMENSIONS : int | None
        Expected vector length, or ``None`` to skip the local check.
    LLM_MODEL : str
        Default model identifier for response generation.
    LANCEDB_TABLE_NAME : str
        Table name inside the LanceDB on-disk database.
    MATCH_THRESHOLD : float
        Minimum cosine similarity a passage needs to be returned.
    MATCH_COUNT : int
        Maximum number of passages returned by a search.
    """

    # ── Resolved Absolute Paths ────────────────────────────────────────
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LANCEDB_PATH: Path = BASE_DIR / "data" / "lancedb"

    # ── Environment Mode ───────────────────────────────────────────────
    ENV: Literal["dev", "prod"] = "dev"
    LOG_LEVEL: str | None = None

    # ── API Keys (REQUIRED, no default) ────────────────────────────────
    GOOGLE_API_KEY: SecretStr

    # ── Model Configuration ────────────────────────────────────────────
    EMBEDDING_MODEL: str = "models/text-embedding-004"
    EMBEDDING_TASK_TYPE: str = "retrieval_query"
    EMBEDDING_DIMENSIONS: int | None = 768
    LLM_MODEL: str = "gemini-3-flash-preview"

    # ── LanceDB ────────────────────────────────────────────────────────
    LANCEDB_TABLE_NAME: str = "documents"

    # ── Retrieval Policy ───────────────────────────────────────────────
    MATCH_THRESHOLD: float = 0.5
    MATCH_COUNT: int = 5

    # ── Per-step Deadlines (seconds, optional) ─────────────────────────
    EMBEDDING_TIMEOUT_SECONDS: float | None = None
    SEARCH_TIMEOUT_SECONDS: float | None = None
    GENERATION_TIMEOUT_SECONDS: float | None = None

    # ── Validators ─────────────────────────────────────────────────────

    @field_validator("MATCH_THRESHOLD")
    @classmethod
    def _threshold_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"MATCH_THRESHOLD must be within 0.0–1.0, got {v}")
        return v


    @field_validator("LOG_LEVEL")
    @classmethod
    def _log_level_known(cls, v: str | None) -> str | None:
        if v is None:
            return v
        name = v.strip().upper()
        if name not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got {v!r}")
        return name


    @field_validator("MATCH_COUNT")
    @classmethod
    def _count_range(cls, v: int) -> int:
        if not 1 <= v <= 50:
            raise ValueError(f"MATCH_COUNT must be 1–50, got {v}")
        return v


    @field_validator("EMBEDDING_DIMENSIONS")
    @classmethod
    def _dimensions_positive(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"EMBEDDING_DIMENSIONS must be positive, got {v}")
        return v


    @field_validator("EMBEDDING_TIMEOUT_SECONDS", "SEARCH_TIMEOUT_SECONDS", "GENERATION_TIMEOUT_SECONDS")
    @classmethod
    def _timeout_positive(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError(f"Timeouts must be greater than zero, got {v}")
        return v

    # ── Pydantic Settings Configuration ────────────────────────────────
    model_config = SettingsConfigDict(env_file=Path(__file__).resolve().parent.parent.parent / ".env", env_file_encoding="utf-8", extra="ignore")


# ── Singleton Instance ─────────────────────────────────────────────────
# Import this throughout the project:
#     from lily.config.settings import settings
settings = Settings()
