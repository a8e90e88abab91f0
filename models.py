"""Shared typed models for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class FeedEntry:
    """One entry read from an Atom or RSS payload, before enrichment."""

    entry_id: str
    title: str
    link: str
    published: str
    body: str
    categories: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Paper:
    """Research paper record, keyed by paper_id."""

    paper_id: str
    title: str
    title_cn: str
    tag: str
    source: str
    url: str
    submitted: str
    impact_score: float
    core_principle: str
    bottom_logic: str
    product_imagination: str
    published_at: datetime


@dataclass(frozen=True, slots=True)
class NewsItem:
    """Industry news record, keyed by news_id."""

    news_id: str
    headline: str
    headline_cn: str
    tag: str
    source: str
    url: str
    time: str
    urgency: str
    summary: str
    power_shift: str
    business_insight: str
    published_at: datetime


@dataclass(frozen=True, slots=True)
class Product:
    """Product listing record, keyed by product_id."""

    product_id: str
    name: str
    tagline: str
    tag: str
    source: str
    url: str
    upvotes: int | None
    verdict: str
    pain_point_analysis: str
    interaction_innovation: str
    published_at: datetime


@dataclass(frozen=True, slots=True)
class Insight:
    """Cross-source daily synthesis. Append-only, no natural key."""

    headline: str
    subheadline: str
    content: str
    source: str
    urgency: str
    published_at: datetime


@dataclass(frozen=True, slots=True)
class Enriched:
    """Fields parsed from a successful enrichment reply."""

    fields: dict[str, Any] = field(default_factory=dict)
    is_fallback = False


@dataclass(frozen=True, slots=True)
class Fallback:
    """Deterministic fields built from the raw input after a failed enrichment."""

    fields: dict[str, Any] = field(default_factory=dict)
    is_fallback = True


EnrichmentResult = Enriched | Fallback
