"""SQLite persistence for papers, news, products and daily insights."""

from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import asdict
from datetime import UTC, datetime, time, timedelta
from typing import Any

from models import Insight, NewsItem, Paper, Product

LOGGER = logging.getLogger(__name__)

KINDS = ("papers", "news", "products", "insights")
DATE_FILTERS = ("today", "week")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS papers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    paper_id TEXT NOT NULL UNIQUE,
    title TEXT NOT NULL,
    title_cn TEXT,
    tag TEXT,
    source TEXT,
    url TEXT,
    submitted TEXT,
    impact_score REAL,
    core_principle TEXT,
    bottom_logic TEXT,
    product_imagination TEXT,
    published_at TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS news (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    news_id TEXT NOT NULL UNIQUE,
    headline TEXT NOT NULL,
    headline_cn TEXT,
    tag TEXT,
    source TEXT,
    url TEXT,
    time TEXT,
    urgency TEXT NOT NULL DEFAULT 'medium'
        CHECK (urgency IN ('critical', 'high', 'medium')),
    summary TEXT,
    power_shift TEXT,
    business_insight TEXT,
    published_at TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS products (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    tagline TEXT,
    tag TEXT,
    source TEXT,
    url TEXT,
    upvotes INTEGER,
    verdict TEXT NOT NULL DEFAULT 'watch'
        CHECK (verdict IN ('real-need', 'pseudo-need', 'watch')),
    pain_point_analysis TEXT,
    interaction_innovation TEXT,
    published_at TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS insights (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    headline TEXT NOT NULL,
    subheadline TEXT,
    content TEXT NOT NULL,
    source TEXT,
    urgency TEXT,
    published_at TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""

# Columns rewritten when an upsert hits an existing key. Key, id, created_at
# and the identity fields (source, url, dates) keep their first-seen values.
_UPDATE_COLUMNS: dict[str, tuple[str, ...]] = {
    "papers": (
        "title",
        "title_cn",
        "tag",
        "impact_score",
        "core_principle",
        "bottom_logic",
        "product_imagination",
    ),
    "news": (
        "headline",
        "headline_cn",
        "tag",
        "urgency",
        "summary",
        "power_shift",
        "business_insight",
    ),
    "products": (
        "name",
        "tagline",
        "tag",
        "upvotes",
        "verdict",
        "pain_point_analysis",
        "interaction_innovation",
    ),
}

_KEY_COLUMNS = {"papers": "paper_id", "news": "news_id", "products": "product_id"}


class Store:
    """Connects to the navigator SQLite database."""

    def __init__(self, db_path: str) -> None:
        """Open (creating if needed) the database and ensure the tables exist."""
        self.db_path = db_path

        parent_dir = os.path.dirname(self.db_path)
        if parent_dir and not os.path.exists(parent_dir):
            os.makedirs(parent_dir, exist_ok=True)

        # Used from the timer thread; writes are serialized by DailyScheduler.
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.executescript(_SCHEMA)
        self.conn.commit()
        LOGGER.info("Opened navigator database: %s", self.db_path)

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()

    def upsert_paper(self, paper: Paper) -> None:
        """Insert a paper, or update its enrichment fields if paper_id exists."""
        self._upsert("papers", asdict(paper))

    def upsert_news_item(self, item: NewsItem) -> None:
        """Insert a news item, or update its content fields if news_id exists."""
        self._upsert("news", asdict(item))

    def upsert_product(self, product: Product) -> None:
        """Insert a product, or update its content fields if product_id exists."""
        self._upsert("products", asdict(product))

    def append_insight(self, insight: Insight) -> None:
        """Append a daily insight row. Insights are never upserted."""
        row = self._prepare(asdict(insight))
        columns = list(row)
        sql = (
            f"INSERT INTO insights ({', '.join(columns)}) "  # noqa: S608
            f"VALUES ({', '.join('?' for _ in columns)})"
        )
        with self.conn:
            self.conn.execute(sql, [row[column] for column in columns])
        LOGGER.info("Appended insight headline=%r", insight.headline)

    def query_recent(self, kind: str, limit: int) -> list[dict[str, Any]]:
        """Return the most recently created rows of kind, newest first by internal id."""
        table = _table(kind)
        cursor = self.conn.execute(
            f"SELECT * FROM {table} ORDER BY id DESC LIMIT ?", (limit,)  # noqa: S608
        )
        return [dict(row) for row in cursor.fetchall()]

    def list_records(
        self,
        kind: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Return rows of kind whose published_at is within [start, end], newest first."""
        table = _table(kind)
        conditions: list[str] = []
        params: list[str] = []
        if start is not None:
            conditions.append("published_at >= ?")
            params.append(_to_db_timestamp(start))
        if end is not None:
            conditions.append("published_at <= ?")
            params.append(_to_db_timestamp(end))

        sql = f"SELECT * FROM {table}"  # noqa: S608
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY published_at DESC, id DESC"
        cursor = self.conn.execute(sql, params)
        return [dict(row) for row in cursor.fetchall()]

    def list_by_filter(self, kind: str, date_filter: str, now: datetime | None = None) -> list[dict[str, Any]]:
        """Return rows of kind for the "today" or "week" window."""
        start, end = date_range(date_filter, now)
        return self.list_records(kind, start, end)

    def _upsert(self, table: str, record: dict[str, Any]) -> None:
        row = self._prepare(record)
        key = _KEY_COLUMNS[table]
        if not row.get(key):
            raise ValueError(f"{table} record is missing its key column {key}")

        columns = list(row)
        updates = ", ".join(f"{column} = excluded.{column}" for column in _UPDATE_COLUMNS[table])
        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) "  # noqa: S608
            f"VALUES ({', '.join('?' for _ in columns)}) "
            f"ON CONFLICT({key}) DO UPDATE SET {updates}"
        )
        with self.conn:
            self.conn.execute(sql, [row[column] for column in columns])
        LOGGER.debug("Upserted %s %s=%s", table, key, row[key])

    @staticmethod
    def _prepare(record: dict[str, Any]) -> dict[str, Any]:
        published_at = record.get("published_at")
        if not isinstance(published_at, datetime):
            raise ValueError("record is missing published_at and cannot be persisted")
        row = dict(record)
        row["published_at"] = _to_db_timestamp(published_at)
        row["created_at"] = _to_db_timestamp(datetime.now(UTC))
        return row


def date_range(date_filter: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return the [start, end] window for a list filter.

    "today" starts at the process-local midnight, "week" seven days before it.
    Both end at now.
    """
    if date_filter not in DATE_FILTERS:
        raise ValueError(f"Unknown date filter: {date_filter!r}")

    local_now = (now or datetime.now(UTC)).astimezone()
    first_day = local_now.date()
    if date_filter == "week":
        first_day -= timedelta(days=7)
    # Offset is resolved for first_day itself, which differs across a DST change.
    start = datetime.combine(first_day, time.min).astimezone()
    return start, local_now


def _table(kind: str) -> str:
    if kind not in KINDS:
        raise ValueError(f"Unknown record kind: {kind!r}")
    return kind


def _to_db_timestamp(value: datetime) -> str:
    """Normalize to a UTC ISO string so lexical order matches time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="seconds")
