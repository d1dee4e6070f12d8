"""
Lily - Generation Client
=========================
Sends the conversation and system instruction to Gemini and extracts
the reply.

Generation parameters are policy constants (``TEMPERATURE``, ``TOP_K``,
``TOP_P``, ``MAX_OUTPUT_TOKENS``) and cannot be changed per request.
Only the model name can, and it falls back to ``settings.LLM_MODEL``.

Outcomes
--------
- Text in the first candidate → ``Ok(text)``.
- Success without text → ``Ok(FALLBACK_REPLY)`` carrying an
  ``EmptyGenerationResult`` warning.
- API error status → ``Failure(GenerationFailed, status=<code>)``.
- Transport error or timeout → ``Failure(GenerationFailed)``.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from lily.config.prompt_templates import FALLBACK_REPLY, GENERATION_ERROR_TEMPLATE
from lily.config.settings import settings
from lily.src.core.models import ChatTurn
from lily.src.core.result import Failure, FailureKind, Ok
from lily.src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Generation policy ─────────────────────────────────────────────────
TEMPERATURE = 0.9
TOP_K = 40
TOP_P = 0.95
MAX_OUTPUT_TOKENS = 2048


def generation_config(system_prompt: str) -> types.GenerateContentConfig:
    """Fixed generation parameters plus the system instruction."""
    return types.GenerateContentConfig(system_instruction=system_prompt, temperature=TEMPERATURE, top_k=TOP_K, top_p=TOP_P, max_output_tokens=MAX_OUTPUT_TOKENS)


def to_contents(conversation: Sequence[ChatTurn]) -> list[types.Content]:
    return [types.Content(role=turn.role, parts=[types.Part(text=turn.text)]) for turn in conversation]


def extract_text(response: Any) -> str | None:
    """Text of the first part of the first candidate, if any."""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        return None
    content = candidates[0].content
    if content is None or not content.parts:
        return None
    return content.parts[0].text or None


class GenerationClient:
    """
    Gemini text generation with failure capture.

    Parameters
    ----------
    client
        A ``google.genai.Client``.  Built from ``settings`` when omitted.
    default_model
        Model used when a request names none.
    timeout
        Optional deadline in seconds for one generation call.
    """

    __slots__ = ("_client", "_default_model", "_timeout")

    def __init__(self, client: genai.Client | None = None, default_model: str = settings.LLM_MODEL, timeout: float | None = settings.GENERATION_TIMEOUT_SECONDS) -> None:
        self._client = client or genai.Client(api_key=settings.GOOGLE_API_KEY.get_secret_value())
        self._default_model = default_model
        self._timeout = timeout


    async def generate(self, conversation: Sequence[ChatTurn], system_prompt: str, model_name: str | None = None) -> Ok[str] | Failure:
        """
        Generate the assistant reply.

        Parameters
        ----------
        conversation
            Turns with ``user`` / ``model`` roles, current query last.
        system_prompt
            System instruction (persona plus optional context).
        model_name
            Gemini model identifier; ``None`` or ``""`` selects the default.

        Returns
        -------
        Ok[str] | Failure
            The reply, or a ``Failure`` tagged ``GenerationFailed``.
        """
        model = model_name or self._default_model
        t_start = time.perf_counter()

        try:
            response = await asyncio.wait_for(self._client.aio.models.generate_content(model=model, contents=to_contents(conversation), config=generation_config(system_prompt)), timeout=self._timeout)
        except asyncio.TimeoutError:
            if self._timeout is None:
                logger.exception("[GENERATE] Gemini request failed (model=%s).", model)
                return Failure(FailureKind.GENERATION_FAILED, "Gemini API request failed")
            logger.error("[GENERATE] Gemini call timed out after %.1fs (model=%s).", self._timeout, model)
            return Failure(FailureKind.GENERATION_FAILED, "Gemini API request timed out")
        except genai_errors.APIError as exc:
            logger.error("[GENERATE] Gemini API error %s: %s", exc.code, exc.message)
            return Failure(FailureKind.GENERATION_FAILED, GENERATION_ERROR_TEMPLATE.format(status=exc.code), status=exc.code)
        except Exception:
            logger.exception("[GENERATE] Gemini request failed (model=%s).", model)
            return Failure(FailureKind.GENERATION_FAILED, "Gemini API request failed")

        llm_ms = (time.perf_counter() - t_start) * 1000
        text = extract_text(response)
        if text is None:
            logger.warning("[GENERATE] No text in Gemini response after %.1fms; using fallback reply.", llm_ms)
            return Ok(FALLBACK_REPLY, warnings=(Failure(FailureKind.EMPTY_GENERATION_RESULT, "Gemini returned no text"),))

        logger.info("[GENERATE] %s replied in %.1fms (%d chars).", model, llm_ms, len(text))
        return Ok(text)
