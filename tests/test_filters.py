import pytest

from filters import filter_ai_entries, is_ai_related
from models import FeedEntry


def _entry(title: str, body: str = "") -> FeedEntry:
    return FeedEntry(
        entry_id=f"https://example.com/{abs(hash(title))}",
        title=title,
        link=f"https://example.com/{abs(hash(title))}",
        published="",
        body=body,
    )


@pytest.mark.parametrize("title", [
    "ChatGPT adds voice mode for everyone",
    "国产人工智能芯片出货量创新高",
    "Anthropic releases Claude update",
    "New generative video tool launches",
    "LLM pricing drops again",
])
def test_ai_titles_are_related(title: str) -> None:
    assert is_ai_related(title) is True


@pytest.mark.parametrize("title", [
    "Best budget phones of the year",
    "Tesla recalls trucks over door locks",
    "Sneaker resale prices cool off",
])
def test_unrelated_titles_are_not_related(title: str) -> None:
    assert is_ai_related(title) is False


def test_keyword_in_body_only_is_related() -> None:
    assert is_ai_related("Quarterly results", "Growth came from OpenAI partnerships.") is True


def test_match_is_case_insensitive() -> None:
    assert is_ai_related("chatgpt outage resolved") is True


def test_filter_keeps_exactly_the_ai_entries() -> None:
    entries = [
        _entry("ChatGPT tops the download charts"),
        _entry("Best budget phones of the year"),
        _entry("Tesla recalls trucks over door locks"),
        _entry("国产人工智能芯片出货量创新高"),
        _entry("Sneaker resale prices cool off"),
        _entry("City council votes on bike lanes"),
        _entry("Weekend box office report", "Superhero sequel wins the weekend."),
        _entry("Streaming bundle gets cheaper"),
        _entry("Quarterly results", "Growth came from deep learning products."),
        _entry("Review: the new e-reader"),
    ]

    kept = filter_ai_entries(entries)

    assert [entry.title for entry in kept] == [
        "ChatGPT tops the download charts",
        "国产人工智能芯片出货量创新高",
        "Quarterly results",
    ]
