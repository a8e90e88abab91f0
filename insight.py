"""Cross-source daily insight synthesis."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from llm_client import as_text, request_json
from models import Insight

ITEMS_PER_SECTION = 3
DEFAULT_SOURCE = "arXiv + News + Product Hunt"
DEFAULT_URGENCY = "今日必读"

LOGGER = logging.getLogger(__name__)

_SYSTEM_PROMPT = """你是一位顶级 AI 行业分析师，每日为产品经理和创业者提供最重要的 AI 洞察。
请基于今日 AI 动态，提炼出最值得关注的核心洞察，返回 JSON 格式。"""

_USER_TEMPLATE = """今日 AI 动态摘要:

论文前沿:
{papers}

行业要闻:
{news}

创新产品:
{products}

请返回如下 JSON（不要有其他内容）:
{{
  "headline": "今日最重要的 AI 洞察标题（英文，简洁有力，如 'The Attention Economy Shifts to AI Agents'）",
  "subheadline": "副标题（中文，一句话点明核心）",
  "content": "洞察内容（200字内中文，深度分析今日 AI 动态的底层逻辑和趋势）",
  "source": "综合来源（如 arXiv + TechCrunch + Product Hunt）",
  "urgency": "紧迫程度标签（如 '本周必读' / '战略级信号' / '技术突破' 等）"
}}"""


def generate_daily_insight(papers: list[str], news: list[str], products: list[str]) -> Insight | None:
    """Ask the model for one synthesis across the latest papers, news and products.

    Returns None when the request or parse fails, or when the reply lacks a
    headline or content; the caller then stores nothing for this run. The
    remaining fields are optional and get defaults.
    """
    user_prompt = _USER_TEMPLATE.format(
        papers=_section(papers),
        news=_section(news),
        products=_section(products),
    )
    messages = [
        {"role": "system", "content": _SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]

    try:
        parsed = request_json(messages)
    except Exception as exc:
        LOGGER.error("Insight synthesis failed: %s", exc)
        return None

    headline = as_text(parsed.get("headline"))
    content = as_text(parsed.get("content"))
    if not headline or not content:
        LOGGER.error("Insight synthesis reply is missing headline or content, discarding")
        return None

    return Insight(
        headline=headline,
        subheadline=as_text(parsed.get("subheadline")),
        content=content,
        source=as_text(parsed.get("source"), DEFAULT_SOURCE),
        urgency=as_text(parsed.get("urgency"), DEFAULT_URGENCY),
        published_at=datetime.now(UTC),
    )


def _section(lines: list[str]) -> str:
    picked = [line for line in lines if line][:ITEMS_PER_SECTION]
    return "\n".join(picked) if picked else "(none)"
