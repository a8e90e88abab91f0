from __future__ import annotations

from unittest.mock import patch

import requests

from conftest import mock_response
from product_feed import fetch_ai_products, split_title
from store import Store


def _feed(count: int) -> str:
    entries = "".join(
        f"""
  <entry>
    <id>tag:www.producthunt.com,2005:Post/{index}</id>
    <title>Tool {index} - Does thing {index} with AI</title>
    <link rel="alternate" type="text/html" href="https://www.producthunt.com/products/tool-{index}"/>
    <content type="html">&lt;p&gt;Longer description {index}&lt;/p&gt;</content>
  </entry>"""
        for index in range(count)
    )
    return f'<feed xmlns="http://www.w3.org/2005/Atom">{entries}\n</feed>'


_ENRICHED = (
    '{"tag": "Productivity", "verdict": "real-need", '
    '"painPointAnalysis": "痛点", "interactionInnovation": "创新"}'
)


def test_split_title_with_separator() -> None:
    assert split_title("Scribe - AI meeting notes - now free") == ("Scribe", "AI meeting notes - now free")


def test_split_title_without_separator_uses_description() -> None:
    assert split_title("Scribe", "x" * 150) == ("Scribe", "x" * 100)


def test_fetch_saves_capped_products(store: Store) -> None:
    with patch("product_feed.requests.get", return_value=mock_response(_feed(8))), \
         patch("llm_client.generate", return_value=_ENRICHED):
        saved = fetch_ai_products(store, max_items=5)

    rows = store.query_recent("products", 10)
    assert saved == 5
    assert len(rows) == 5
    names = sorted(row["name"] for row in rows)
    assert names == [f"Tool {index}" for index in range(5)]
    assert {row["verdict"] for row in rows} == {"real-need"}
    assert {row["source"] for row in rows} == {"Product Hunt"}
    assert all(row["product_id"].startswith("ph-") for row in rows)
    assert all(row["upvotes"] is None for row in rows)


def test_fallback_when_enrichment_fails(store: Store) -> None:
    with patch("product_feed.requests.get", return_value=mock_response(_feed(2))), \
         patch("llm_client.generate", side_effect=requests.Timeout("llm slow")):
        saved = fetch_ai_products(store)

    rows = store.query_recent("products", 10)
    assert saved == 2
    for row in rows:
        assert row["verdict"] == "watch"
        assert row["tag"] == "AI Tool"
        assert row["pain_point_analysis"] == row["tagline"]


def test_invalid_verdict_defaults_to_watch(store: Store) -> None:
    with patch("product_feed.requests.get", return_value=mock_response(_feed(1))), \
         patch("llm_client.generate", return_value='{"verdict": "must-have"}'):
        fetch_ai_products(store)

    assert store.query_recent("products", 1)[0]["verdict"] == "watch"


def test_source_failure_returns_zero(store: Store) -> None:
    with patch("product_feed.requests.get", return_value=mock_response(status_code=500)):
        assert fetch_ai_products(store) == 0
