"""AI product fetcher: read the Product Hunt AI feed, enrich, upsert."""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Any

import requests

from feed_parser import parse_rss_feed
from llm_client import as_choice, as_text, enrich
from models import FeedEntry, Product

PRODUCT_HUNT_FEED_URL = "https://www.producthunt.com/feed?category=artificial-intelligence"
PRODUCT_SOURCE = "Product Hunt"
REQUEST_TIMEOUT_SECONDS = 15
USER_AGENT = "AI-News-Navigator/1.0"
VERDICTS: frozenset[str] = frozenset({"real-need", "pseudo-need", "watch"})

LOGGER = logging.getLogger(__name__)

_SYSTEM_PROMPT = """你是一位 AI 产品经理，擅长评估 AI 产品的真实价值和市场潜力。
请分析以下 AI 产品，返回 JSON 格式的结构化分析。"""

_USER_TEMPLATE = """产品名称: {name}
产品描述: {tagline}
来源: {source}

请返回如下 JSON（不要有其他内容）:
{{
  "tag": "产品类别标签（如 Productivity / Writing / Code / Image / Video / Voice / Data 等，最多2个词）",
  "verdict": "real-need|pseudo-need|watch（评估是否解决真实需求）",
  "painPointAnalysis": "痛点分析（100字内中文，分析解决了什么问题）",
  "interactionInnovation": "交互创新（80字内中文，分析产品的创新之处）"
}}"""


def fetch_ai_products(store: Any, max_items: int = 5) -> int:
    """Fetch trending AI products and upsert them. Returns the saved count."""
    LOGGER.info("Products fetch: starting, max_items=%s", max_items)
    saved = 0

    try:
        entries = _read_product_hunt()
        LOGGER.info("Products fetch: source=%s items=%s", PRODUCT_SOURCE, len(entries))

        for sequence, entry in enumerate(entries[:max_items], start=1):
            try:
                product_id = f"ph-{int(time.time() * 1000)}-{sequence}"
                product = build_product(entry, product_id)
                store.upsert_product(product)
                saved += 1
                LOGGER.info("Products fetch: saved: %s", product.name)
            except Exception as exc:
                LOGGER.exception("Products fetch: failed to process %r: %s", entry.title, exc)
    except Exception as exc:
        LOGGER.exception("Products fetch: unexpected failure: %s", exc)

    LOGGER.info("Products fetch: done, saved=%s", saved)
    return saved


def _read_product_hunt() -> list[FeedEntry]:
    try:
        response = requests.get(
            PRODUCT_HUNT_FEED_URL,
            headers={"User-Agent": USER_AGENT},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        LOGGER.warning("Products fetch: source=%s failed, skipping: %s", PRODUCT_SOURCE, exc)
        return []
    return parse_rss_feed(response.text)


def split_title(title: str, description: str = "") -> tuple[str, str]:
    """Split a ``Name - Tagline`` listing title into (name, tagline)."""
    name, _, tagline = title.partition(" - ")
    name = name.strip() or title.strip()
    tagline = tagline.strip() or description[:100]
    return name, tagline


def build_product(entry: FeedEntry, product_id: str) -> Product:
    """Enrich one listing and assemble its Product record."""
    name, tagline = split_title(entry.title, entry.body)
    defaults = _fallback_fields(tagline)

    result = enrich(_build_messages(name, tagline), defaults)
    if result.is_fallback:
        LOGGER.warning("Products fetch: using fallback enrichment for product_id=%s", product_id)
    fields = result.fields

    return Product(
        product_id=product_id,
        name=name,
        tagline=tagline,
        tag=as_text(fields.get("tag"), defaults["tag"]),
        source=PRODUCT_SOURCE,
        url=entry.link,
        # The feed carries no vote counts.
        upvotes=None,
        verdict=as_choice(fields.get("verdict"), VERDICTS, defaults["verdict"]),
        pain_point_analysis=as_text(fields.get("painPointAnalysis"), defaults["painPointAnalysis"]),
        interaction_innovation=as_text(fields.get("interactionInnovation"), defaults["interactionInnovation"]),
        published_at=datetime.now(UTC),
    )


def _build_messages(name: str, tagline: str) -> list[dict[str, str]]:
    user_prompt = _USER_TEMPLATE.format(name=name, tagline=tagline, source=PRODUCT_SOURCE)
    return [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def _fallback_fields(tagline: str) -> dict[str, Any]:
    return {
        "tag": "AI Tool",
        "verdict": "watch",
        "painPointAnalysis": tagline[:100],
        "interactionInnovation": "",
    }
