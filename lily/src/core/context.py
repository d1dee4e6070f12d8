"""
Lily - Context Assembler
=========================
Formats retrieved passages into the context block of the system prompt.

Pure and total: no passages gives ``""`` (and therefore no context
section at all).  Passage order is kept and content is never truncated;
the search limit and threshold are what bound the block's size.
"""

from __future__ import annotations

from collections.abc import Sequence

from lily.config.prompt_templates import PASSAGE_SEPARATOR, PASSAGE_TEMPLATE
from lily.src.core.models import RetrievedPassage


def format_passage(passage: RetrievedPassage) -> str:
    """Render one passage as a source-labelled block."""
    return PASSAGE_TEMPLATE.format(source=passage.source_label, content=passage.content)


def assemble(passages: Sequence[RetrievedPassage]) -> str:
    """
    Join the formatted passages with a blank line between blocks.

    Args:
        passages: Search hits in the order the store returned them.

    Returns:
        The context block, or ``""`` when *passages* is empty.
    """
    return PASSAGE_SEPARATOR.join(format_passage(p) for p in passages)
