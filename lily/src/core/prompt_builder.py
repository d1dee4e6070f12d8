"""
Lily - Prompt Builder
======================
Builds the two inputs of the generation call:

``build_system_prompt``
    Persona template, plus the knowledge-base section when there is
    context.  Without context the persona is returned unchanged.
``build_conversation``
    Prior turns in their original order with roles mapped onto the
    generation API's vocabulary, followed by the current query.
"""

from __future__ import annotations

from collections.abc import Sequence

from lily.config.prompt_templates import CONTEXT_SECTION_TEMPLATE, PERSONA_PROMPT
from lily.src.core.models import MODEL_ROLE, USER_ROLE, ChatTurn


def build_system_prompt(context_block: str) -> str:
    """Return the system instruction for *context_block* (may be empty)."""
    if not context_block:
        return PERSONA_PROMPT
    return PERSONA_PROMPT + "\n\n" + CONTEXT_SECTION_TEMPLATE.format(context=context_block)


def normalize_role(role: str) -> str:
    """
    Map a history role onto the generation API's two roles.

    ``"user"`` stays ``"user"``.  Every other value, ``"assistant"`` and
    unknown roles included, becomes ``"model"``.  Matching is exact, so
    ``"User"`` is also ``"model"``.  Adding a third role means changing
    this function.
    """
    if role == USER_ROLE:
        return USER_ROLE
    return MODEL_ROLE


def build_conversation(history: Sequence[ChatTurn], query: str) -> list[ChatTurn]:
    """
    Linearise *history* and append *query* as the final user turn.

    No reordering and no deduplication; the result always has
    ``len(history) + 1`` entries.
    """
    conversation = [ChatTurn(role=normalize_role(turn.role), text=turn.text) for turn in history]
    conversation.append(ChatTurn(role=USER_ROLE, text=query))
    return conversation
