"""
Lily - Command-line Chat
=========================
Runs a single chat turn through the pipeline and prints the JSON payload
the HTTP layer would send back.

Flags:
    --history FILE   JSON file with prior turns: ``[{"role": ..., "content": ...}]``.
    --model NAME     Gemini model override (defaults to ``LLM_MODEL``).
    -v, --verbose    Log everything (DEBUG) to stderr.
    -q, --quiet      Log errors only.

Exit status is 0 for a reply, 1 for an error payload, 2 for bad input.

Usage:
    python -m lily.scripts.chat "What is the proposal deadline?"
    python -m lily.scripts.chat --history history.json "繼續說"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="lily-chat", description="Lily: send one message through the retrieval-augmented chat pipeline.")
    parser.add_argument("message", nargs="?", default="", help="The user message.")
    parser.add_argument("--history", type=Path, default=None, help="JSON file holding the prior conversation turns.")
    parser.add_argument("--model", default=None, help="Gemini model identifier (optional).")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level.")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Log errors only.")
    return parser.parse_args(argv)


def load_history(path: Path | None) -> list[dict[str, Any]]:
    """Read a JSON list of turns from *path*; ``None`` means no history."""
    if path is None:
        return []
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"History file must hold a JSON list, got {type(data).__name__}")
    return data


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        from lily.config.settings import settings  # noqa: F401
    except Exception as exc:
        print("\n[FATAL] Configuration error, check your .env file:\n", file=sys.stderr)
        print(f"  {exc}\n", file=sys.stderr)
        return 2

    from lily.src.core.rag_engine import ChatPipeline
    from lily.src.utils.logger import get_logger, set_level
    logger = get_logger(__name__)

    if args.verbose:
        set_level(logging.DEBUG)
    elif args.quiet:
        set_level(logging.ERROR)

    try:
        history = load_history(args.history)
    except (OSError, ValueError) as exc:
        logger.error("Could not read history file %s: %s", args.history, exc)
        return 2

    pipeline = ChatPipeline.from_settings()
    payload = asyncio.run(pipeline.handle_chat_request(args.message, history, args.model))

    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 1 if "error" in payload else 0


if __name__ == "__main__":
    sys.exit(main())
