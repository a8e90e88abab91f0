from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

import arxiv_feed
import news_feed
from store import Store


@pytest.fixture(autouse=True)
def no_rate_limit_delay(monkeypatch: pytest.MonkeyPatch) -> None:
    """Skip the inter-query throttle so fetcher tests run instantly."""
    monkeypatch.setattr(arxiv_feed, "INTER_QUERY_DELAY_SECONDS", 0)
    monkeypatch.setattr(news_feed, "INTER_FEED_DELAY_SECONDS", 0)


@pytest.fixture
def store(tmp_path: Path) -> Store:
    db = Store(str(tmp_path / "navigator.db"))
    yield db
    db.close()


def mock_response(text: str = "", status_code: int = 200) -> MagicMock:
    """Return a mock requests.Response carrying text."""
    mock = MagicMock()
    mock.text = text
    mock.status_code = status_code
    if status_code >= 400:
        mock.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Server Error")
    return mock
