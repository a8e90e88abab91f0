"""arXiv paper fetcher: query the public Atom API, enrich, upsert."""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlencode

import requests

from feed_parser import parse_arxiv_feed
from llm_client import as_text, enrich
from models import FeedEntry, Paper

# Public endpoint, no key required: https://info.arxiv.org/help/api/user-manual.html
ARXIV_API_URL = "https://export.arxiv.org/api/query"
ARXIV_QUERIES = ("cat:cs.AI", "cat:cs.LG")
REQUEST_TIMEOUT_SECONDS = 30
USER_AGENT = "AI-News-Navigator/1.0"
ENTRIES_PER_QUERY = 3
# arXiv asks clients to wait ~3s between consecutive API calls.
INTER_QUERY_DELAY_SECONDS = 3.0

LOGGER = logging.getLogger(__name__)

_SYSTEM_PROMPT = """你是一位 AI 产品专家，擅长分析 AI 研究论文并提炼其商业价值。
请用中文分析以下论文，返回 JSON 格式的结构化数据。"""

_USER_TEMPLATE = """论文标题: {title}
摘要: {summary}
分类: {categories}

请返回如下 JSON（不要有其他内容）:
{{
  "titleCn": "论文标题的中文翻译（简洁）",
  "tag": "论文领域标签（如 LLM / Vision / Robotics / Multimodal / RL / NLP 等，最多2个词）",
  "impactScore": 数字（1-10，评估对AI产品的影响力）,
  "corePrinciple": "核心原理（100字内中文）",
  "bottomLogic": "底层逻辑（80字内中文，从产品经理视角）",
  "productImagination": "落地想象（100字内中文，具体产品应用场景）"
}}"""


def fetch_arxiv_papers(store: Any, max_results: int = 5) -> int:
    """Fetch recent AI papers from arXiv and upsert them. Returns the saved count.

    Never raises: failed queries are skipped, failed entries are logged and
    skipped, and anything unexpected still returns the count saved so far.
    """
    LOGGER.info("arXiv fetch: starting, queries=%s max_results=%s", len(ARXIV_QUERIES), max_results)
    saved = 0

    try:
        for index, query in enumerate(ARXIV_QUERIES):
            if index > 0:
                time.sleep(INTER_QUERY_DELAY_SECONDS)
            saved += _fetch_query(store, query, max_results)
    except Exception as exc:  # outermost boundary: report what was saved
        LOGGER.exception("arXiv fetch: unexpected failure: %s", exc)

    LOGGER.info("arXiv fetch: done, saved=%s", saved)
    return saved


def _fetch_query(store: Any, query: str, max_results: int) -> int:
    params = {
        "search_query": query,
        "start": 0,
        "max_results": max_results,
        "sortBy": "submittedDate",
        "sortOrder": "descending",
    }
    url = f"{ARXIV_API_URL}?{urlencode(params)}"

    try:
        response = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.RequestException as exc:
        LOGGER.warning("arXiv fetch: query=%s failed, skipping: %s", query, exc)
        return 0

    entries = parse_arxiv_feed(response.text)
    LOGGER.info("arXiv fetch: query=%s entries=%s", query, len(entries))

    saved = 0
    for entry in entries[:ENTRIES_PER_QUERY]:
        try:
            store.upsert_paper(build_paper(entry))
            saved += 1
            LOGGER.info("arXiv fetch: saved paper: %s", entry.title[:60])
        except Exception as exc:
            LOGGER.exception("arXiv fetch: failed to process entry %r: %s", entry.title, exc)
    return saved


def build_paper(entry: FeedEntry) -> Paper:
    """Derive the key, enrich, and assemble a Paper record for one entry."""
    paper_id = paper_id_for(entry.entry_id)
    published_at = _parse_published(entry.published)

    result = enrich(_build_messages(entry), _fallback_fields(entry))
    if result.is_fallback:
        LOGGER.warning("arXiv fetch: using fallback enrichment for paper_id=%s", paper_id)
    fields = _normalize_fields(result.fields, _fallback_fields(entry))

    return Paper(
        paper_id=paper_id,
        title=entry.title,
        title_cn=fields["titleCn"],
        tag=fields["tag"],
        source="arXiv",
        url=entry.link or entry.entry_id,
        submitted=published_at.date().isoformat(),
        impact_score=fields["impactScore"],
        core_principle=fields["corePrinciple"],
        bottom_logic=fields["bottomLogic"],
        product_imagination=fields["productImagination"],
        published_at=published_at,
    )


def paper_id_for(entry_id: str) -> str:
    """Map an arXiv id or abs URL to the stored key, e.g. ``arxiv-2401-12345v1``."""
    arxiv_id = entry_id.rsplit("/abs/", 1)[-1].strip()
    if not arxiv_id:
        raise ValueError(f"Cannot derive arXiv id from {entry_id!r}")
    return "arxiv-" + arxiv_id.replace(".", "-")


def _parse_published(raw: str) -> datetime:
    if not raw:
        raise ValueError("arXiv entry has no published date")
    parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _build_messages(entry: FeedEntry) -> list[dict[str, str]]:
    user_prompt = _USER_TEMPLATE.format(
        title=entry.title,
        summary=entry.body or "Not available.",
        categories=", ".join(entry.categories),
    )
    return [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def _fallback_fields(entry: FeedEntry) -> dict[str, Any]:
    return {
        "titleCn": "",
        "tag": "AI",
        "impactScore": 5.0,
        "corePrinciple": entry.body[:100],
        "bottomLogic": "",
        "productImagination": "",
    }


def _normalize_fields(fields: dict[str, Any], defaults: dict[str, Any]) -> dict[str, Any]:
    """Coerce a possibly partial model reply into complete, well-typed fields."""
    return {
        "titleCn": as_text(fields.get("titleCn"), defaults["titleCn"]),
        "tag": as_text(fields.get("tag"), defaults["tag"]),
        "impactScore": _coerce_score(fields.get("impactScore"), defaults["impactScore"]),
        "corePrinciple": as_text(fields.get("corePrinciple"), defaults["corePrinciple"]),
        "bottomLogic": as_text(fields.get("bottomLogic"), defaults["bottomLogic"]),
        "productImagination": as_text(fields.get("productImagination"), defaults["productImagination"]),
    }


def _coerce_score(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        score = float(value)
    except (TypeError, ValueError):
        return default
    if score != score:  # NaN
        return default
    return min(10.0, max(1.0, score))
