"""Keyword relevance filter for news items (no LLM calls)."""

from __future__ import annotations

from models import FeedEntry

# Case-insensitive substring match: "AI" also hits words such as "said".
AI_KEYWORDS: tuple[str, ...] = (
    "AI",
    "artificial intelligence",
    "machine learning",
    "deep learning",
    "ChatGPT",
    "GPT",
    "Claude",
    "Gemini",
    "LLM",
    "OpenAI",
    "Anthropic",
    "Google AI",
    "Microsoft AI",
    "Meta AI",
    "neural",
    "model",
    "robot",
    "automation",
    "generative",
    "大模型",
    "人工智能",
    "大语言模型",
)

_LOWERED_KEYWORDS: tuple[str, ...] = tuple(keyword.lower() for keyword in AI_KEYWORDS)


def is_ai_related(title: str, body: str = "") -> bool:
    """Return True if title or body mentions any AI keyword."""
    text = f"{title} {body or ''}".lower()
    return any(keyword in text for keyword in _LOWERED_KEYWORDS)


def filter_ai_entries(entries: list[FeedEntry]) -> list[FeedEntry]:
    """Keep only entries whose title or body is AI-related, in original order."""
    return [entry for entry in entries if is_ai_related(entry.title, entry.body)]
