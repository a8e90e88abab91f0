"""Text-generation client used to enrich fetched items.

``enrich`` is the entry point for fetchers: it never raises and always hands
back either the parsed reply (``Enriched``) or the caller's deterministic
defaults (``Fallback``). ``request_json`` raises and is used where the
caller wants to tell failure apart from a degraded result.
"""

from __future__ import annotations

import json
import logging
import os
from json import JSONDecodeError
from typing import Any

from openai import OpenAI

import anthropic_client
from models import Enriched, EnrichmentResult, Fallback

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.3"))
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "openai")
REQUEST_TIMEOUT_SECONDS = 60

LOGGER = logging.getLogger(__name__)


def generate(messages: list[dict[str, str]]) -> str:
    """Send one chat request to the configured backend and return the raw reply."""
    if LLM_PROVIDER == "anthropic":
        return anthropic_client.claude_chat(messages)

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is required")

    client = OpenAI(api_key=api_key, timeout=REQUEST_TIMEOUT_SECONDS, max_retries=0)
    response = client.chat.completions.create(
        model=OPENAI_MODEL,
        temperature=OPENAI_TEMPERATURE,
        response_format={"type": "json_object"},
        messages=messages,
    )

    content = response.choices[0].message.content
    if not isinstance(content, str) or not content.strip():
        raise RuntimeError("OpenAI returned an empty response")
    return content


def request_json(messages: list[dict[str, str]]) -> dict[str, Any]:
    """Generate a reply and parse it as a JSON object. Raises on any failure."""
    return parse_json_object(generate(messages))


def enrich(messages: list[dict[str, str]], fallback: dict[str, Any]) -> EnrichmentResult:
    """Run one enrichment request, returning ``fallback`` wrapped on failure.

    No retry: a failed enrichment is not attempted again within the run.
    """
    try:
        parsed = request_json(messages)
    except Exception as exc:  # transport, auth, empty reply and parse errors all degrade the same way
        LOGGER.warning("Enrichment failed, using fallback fields: %s", exc)
        return Fallback(fields=dict(fallback))
    return Enriched(fields=parsed)


def parse_json_object(content: str) -> dict[str, Any]:
    """Parse possibly noisy model output into a strict JSON object."""
    try:
        parsed = json.loads(content)
    except JSONDecodeError:
        parsed = _extract_first_json_object(content)

    if not isinstance(parsed, dict):
        raise RuntimeError("Expected JSON object from model response")
    return parsed


def _extract_first_json_object(content: str) -> dict[str, Any]:
    """Extract the first decodable JSON object from an arbitrary string."""
    decoder = json.JSONDecoder()
    for index, char in enumerate(content):
        if char != "{":
            continue
        try:
            candidate, _ = decoder.raw_decode(content[index:])
        except JSONDecodeError:
            continue
        if isinstance(candidate, dict):
            return candidate
    raise RuntimeError("Could not extract valid JSON object from model output")


def as_text(value: Any, default: str = "") -> str:
    """Return a stripped string, or default when value is not a non-empty string."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def as_choice(value: Any, choices: frozenset[str], default: str) -> str:
    """Return value if it is one of choices (case-insensitive), else default."""
    if isinstance(value, str) and value.strip().lower() in choices:
        return value.strip().lower()
    return default
