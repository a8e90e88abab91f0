"""Thin wrapper around the Anthropic Messages API."""

from __future__ import annotations

import logging
import os
from typing import Any

import anthropic

CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-5")
CLAUDE_MAX_TOKENS = int(os.getenv("CLAUDE_MAX_TOKENS", "1024"))
REQUEST_TIMEOUT_SECONDS = 60

LOGGER = logging.getLogger(__name__)


def claude_chat(messages: list[dict[str, str]], max_tokens: int = CLAUDE_MAX_TOKENS) -> str:
    """Send chat-style messages to Claude and return the reply text.

    A "system" message is lifted out of the list and passed through the
    dedicated ``system=`` parameter. Claude has no JSON response mode, so the
    system prompt gets a JSON-only reminder appended.
    """
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        raise RuntimeError("ANTHROPIC_API_KEY environment variable is required")

    system_parts: list[str] = []
    conversation: list[dict[str, Any]] = []
    for message in messages:
        if message["role"] == "system":
            system_parts.append(message["content"])
        else:
            conversation.append({"role": message["role"], "content": message["content"]})
    system_parts.append("Reply with a single JSON object only.")

    client = anthropic.Anthropic(api_key=api_key, timeout=REQUEST_TIMEOUT_SECONDS)
    LOGGER.debug("Calling Claude model=%s max_tokens=%s", CLAUDE_MODEL, max_tokens)
    response = client.messages.create(
        model=CLAUDE_MODEL,
        max_tokens=max_tokens,
        system="\n\n".join(system_parts),
        messages=conversation,
    )

    text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
    if not text:
        raise RuntimeError("Claude returned an empty response")
    return text
