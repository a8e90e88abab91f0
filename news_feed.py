"""AI industry news fetcher: read RSS feeds, keep AI-related items, enrich, upsert."""

from __future__ import annotations

import itertools
import logging
import time
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any

import requests

from feed_parser import parse_rss_feed
from filters import filter_ai_entries
from llm_client import as_choice, as_text, enrich
from models import FeedEntry, NewsItem

RSS_FEEDS: tuple[dict[str, str], ...] = (
    {"url": "https://techcrunch.com/feed/", "source": "TechCrunch"},
    {"url": "https://feeds.feedburner.com/venturebeat/SZYF", "source": "VentureBeat"},
    {"url": "https://www.theverge.com/rss/index.xml", "source": "The Verge"},
)
REQUEST_TIMEOUT_SECONDS = 15
USER_AGENT = "AI-News-Navigator/1.0"
INTER_FEED_DELAY_SECONDS = 2.0
URGENCY_LEVELS: frozenset[str] = frozenset({"critical", "high", "medium"})

LOGGER = logging.getLogger(__name__)

_SYSTEM_PROMPT = """你是一位 AI 行业分析师，擅长解读 AI 新闻的商业影响。
请分析以下新闻，从产品经理和商业战略视角提供洞察，返回 JSON 格式。"""

_USER_TEMPLATE = """新闻标题: {title}
来源: {source}
摘要: {description}

请返回如下 JSON（不要有其他内容）:
{{
  "headlineCn": "标题的中文翻译（简洁有力）",
  "tag": "新闻标签（如 OpenAI / Google / 监管 / 融资 / 产品发布 等，最多2个词）",
  "urgency": "critical|high|medium（根据对AI行业的影响程度）",
  "summary": "新闻摘要（100字内中文）",
  "powerShift": "权力变动分析（80字内中文，分析谁受益谁受损，用**加粗**关键词）",
  "businessInsight": "商业启示（100字内中文，对产品团队的启发，用**加粗**关键词）"
}}"""


def fetch_ai_news(store: Any, max_per_source: int = 3, feeds: tuple[dict[str, str], ...] = RSS_FEEDS) -> int:
    """Fetch AI-related news from each feed and upsert them. Returns the saved count."""
    LOGGER.info("News fetch: starting, feeds=%s max_per_source=%s", len(feeds), max_per_source)
    saved = 0
    sequence = itertools.count(1)

    try:
        for index, feed in enumerate(feeds):
            if index > 0:
                time.sleep(INTER_FEED_DELAY_SECONDS)
            saved += _fetch_feed(store, feed, max_per_source, sequence)
    except Exception as exc:
        LOGGER.exception("News fetch: unexpected failure: %s", exc)

    LOGGER.info("News fetch: done, saved=%s", saved)
    return saved


def _fetch_feed(store: Any, feed: dict[str, str], max_per_source: int, sequence: itertools.count) -> int:
    source = feed["source"]
    headers = {
        "User-Agent": USER_AGENT,
        "Accept": "application/rss+xml, application/xml, text/xml",
    }
    try:
        response = requests.get(feed["url"], headers=headers, timeout=REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.RequestException as exc:
        LOGGER.warning("News fetch: source=%s failed, skipping: %s", source, exc)
        return 0

    entries = parse_rss_feed(response.text)
    relevant = filter_ai_entries(entries)
    LOGGER.info("News fetch: source=%s items=%s ai_related=%s", source, len(entries), len(relevant))

    saved = 0
    for entry in relevant[:max_per_source]:
        try:
            news_id = f"news-{_epoch_ms()}-{next(sequence)}"
            store.upsert_news_item(build_news_item(entry, source, news_id))
            saved += 1
            LOGGER.info("News fetch: saved: %s", entry.title[:60])
        except Exception as exc:
            LOGGER.exception("News fetch: failed to process %r: %s", entry.title, exc)
    return saved


def build_news_item(entry: FeedEntry, source: str, news_id: str) -> NewsItem:
    """Enrich one feed entry and assemble its NewsItem record."""
    published_at = parse_pub_date(entry.published)
    defaults = _fallback_fields(entry)

    result = enrich(_build_messages(entry, source), defaults)
    if result.is_fallback:
        LOGGER.warning("News fetch: using fallback enrichment for news_id=%s", news_id)
    fields = result.fields

    return NewsItem(
        news_id=news_id,
        headline=entry.title,
        headline_cn=as_text(fields.get("headlineCn"), defaults["headlineCn"]),
        tag=as_text(fields.get("tag"), defaults["tag"]),
        source=source,
        url=entry.link,
        time=published_at.date().isoformat(),
        urgency=as_choice(fields.get("urgency"), URGENCY_LEVELS, defaults["urgency"]),
        summary=as_text(fields.get("summary"), defaults["summary"]),
        power_shift=as_text(fields.get("powerShift"), defaults["powerShift"]),
        business_insight=as_text(fields.get("businessInsight"), defaults["businessInsight"]),
        published_at=published_at,
    )


def parse_pub_date(raw: str) -> datetime:
    """Parse an RFC 822 or ISO 8601 feed date, falling back to now."""
    if not raw:
        return datetime.now(UTC)

    try:
        parsed = parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
        except ValueError:
            LOGGER.debug("News fetch: unparseable date %r, using now", raw)
            return datetime.now(UTC)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _build_messages(entry: FeedEntry, source: str) -> list[dict[str, str]]:
    user_prompt = _USER_TEMPLATE.format(title=entry.title, source=source, description=entry.body[:500])
    return [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def _fallback_fields(entry: FeedEntry) -> dict[str, Any]:
    return {
        "headlineCn": entry.title,
        "tag": "AI",
        "urgency": "medium",
        "summary": entry.body[:100],
        "powerShift": "",
        "businessInsight": "",
    }


def _epoch_ms() -> int:
    return int(time.time() * 1000)
