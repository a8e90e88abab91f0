"""Tolerant readers for arXiv Atom and RSS/Atom feed payloads.

Each entry block is matched and parsed on its own; a malformed entry is
dropped without losing the rest of the document.
"""

from __future__ import annotations

import html
import logging
import re

from models import FeedEntry

LOGGER = logging.getLogger(__name__)

_ATOM_ENTRY_RE = re.compile(r"<entry(?:\s[^>]*)?>(.*?)</entry>", re.DOTALL)
_RSS_BLOCK_RE = re.compile(r"<(item|entry)(?:\s[^>]*)?>(.*?)</\1>", re.DOTALL)
_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_LINK_TAG_RE = re.compile(r"<link\b([^>]*?)/?>", re.DOTALL)
_ATTR_RE = re.compile(r'([\w:-]+)\s*=\s*"([^"]*)"')
_CATEGORY_TERM_RE = re.compile(r'<category\b[^>]*\bterm="([^"]+)"')


def parse_arxiv_feed(xml: str) -> list[FeedEntry]:
    """Parse an arXiv API Atom response into feed entries.

    The entry link is the ``text/html`` alternate link when present, else the
    entry id (which is the abs page URL on arXiv).
    """
    entries: list[FeedEntry] = []
    for match in _ATOM_ENTRY_RE.finditer(xml or ""):
        try:
            entry = _parse_arxiv_entry(match.group(1))
        except Exception as exc:  # a single bad entry must not abort the payload
            LOGGER.warning("arXiv reader: skipping malformed entry: %s", exc)
            continue
        if entry is not None:
            entries.append(entry)
    return entries


def parse_rss_feed(xml: str) -> list[FeedEntry]:
    """Parse RSS 2.0 ``<item>`` and Atom ``<entry>`` blocks into feed entries."""
    entries: list[FeedEntry] = []
    for match in _RSS_BLOCK_RE.finditer(xml or ""):
        try:
            entry = _parse_rss_block(match.group(2))
        except Exception as exc:
            LOGGER.warning("RSS reader: skipping malformed item: %s", exc)
            continue
        if entry is not None:
            entries.append(entry)
    return entries


def _parse_arxiv_entry(block: str) -> FeedEntry | None:
    entry_id = _field(block, "id")
    title = _collapse(_field(block, "title"))
    if not entry_id or not title:
        return None

    links = _links(block)
    link = next((attrs["href"] for attrs in links if attrs.get("type") == "text/html"), entry_id)

    return FeedEntry(
        entry_id=entry_id,
        title=title,
        link=link,
        published=_field(block, "published"),
        body=_collapse(_field(block, "summary")),
        categories=tuple(_CATEGORY_TERM_RE.findall(block)),
    )


def _parse_rss_block(block: str) -> FeedEntry | None:
    title = _collapse(_field(block, "title"))
    link = _field(block, "link")
    if not link:
        links = _links(block)
        alternate = [attrs for attrs in links if attrs.get("rel", "alternate") == "alternate"]
        link = (alternate or links or [{}])[0].get("href", "")
    if not title or not link:
        return None

    categories = [_collapse(value) for value in _fields(block, "category")]
    categories.extend(_CATEGORY_TERM_RE.findall(block))

    return FeedEntry(
        entry_id=_field(block, "guid") or _field(block, "id") or link,
        title=title,
        link=link,
        published=_field(block, "pubDate") or _field(block, "published") or _field(block, "updated"),
        body=_collapse(
            _strip_tags(
                _field(block, "description") or _field(block, "summary") or _field(block, "content")
            )
        ),
        categories=tuple(value for value in categories if value),
    )


def _field(block: str, tag: str) -> str:
    values = _fields(block, tag)
    return values[0] if values else ""


def _fields(block: str, tag: str) -> list[str]:
    """Return the unwrapped text of every ``<tag>...</tag>`` in block."""
    pattern = re.compile(rf"<{re.escape(tag)}(?:\s[^>]*)?>(.*?)</{re.escape(tag)}>", re.DOTALL)
    return [_unwrap(raw) for raw in pattern.findall(block)]


def _unwrap(raw: str) -> str:
    """Decode the XML layer once: CDATA verbatim, otherwise entities."""
    cdata = _CDATA_RE.search(raw)
    if cdata:
        return cdata.group(1).strip()
    return html.unescape(raw).strip()


def _links(block: str) -> list[dict[str, str]]:
    links: list[dict[str, str]] = []
    for attrs_raw in _LINK_TAG_RE.findall(block):
        attrs = {name: html.unescape(value) for name, value in _ATTR_RE.findall(attrs_raw)}
        if attrs.get("href"):
            links.append(attrs)
    return links


def _strip_tags(text: str) -> str:
    """Reduce an HTML fragment (already XML-decoded) to its text."""
    return html.unescape(_TAG_RE.sub(" ", text))


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()
