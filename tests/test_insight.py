from __future__ import annotations

import json
from unittest.mock import patch

import requests

from insight import DEFAULT_SOURCE, DEFAULT_URGENCY, generate_daily_insight

_PAPERS = ["论文 A", "论文 B", "论文 C", "论文 D"]
_NEWS = ["新闻 A"]
_PRODUCTS = ["Scribe: AI meeting notes"]


def test_returns_insight_on_success() -> None:
    reply = json.dumps({
        "headline": "Agents Go Mainstream",
        "subheadline": "智能体进入主流",
        "content": "今日动态显示智能体正在落地。",
        "source": "arXiv + TechCrunch + Product Hunt",
        "urgency": "战略级信号",
    })
    with patch("llm_client.generate", return_value=reply) as mock_generate:
        insight = generate_daily_insight(_PAPERS, _NEWS, _PRODUCTS)

    assert insight is not None
    assert insight.headline == "Agents Go Mainstream"
    assert insight.urgency == "战略级信号"
    assert insight.published_at.tzinfo is not None

    prompt = mock_generate.call_args.args[0][1]["content"]
    assert "论文 C" in prompt
    assert "论文 D" not in prompt
    assert "Scribe: AI meeting notes" in prompt


def test_optional_fields_get_defaults() -> None:
    reply = json.dumps({"headline": "Quiet Day", "content": "没有重大变化。"})
    with patch("llm_client.generate", return_value=reply):
        insight = generate_daily_insight(_PAPERS, _NEWS, _PRODUCTS)

    assert insight is not None
    assert insight.subheadline == ""
    assert insight.source == DEFAULT_SOURCE
    assert insight.urgency == DEFAULT_URGENCY


def test_missing_required_field_returns_none() -> None:
    reply = json.dumps({"headline": "Only a headline", "subheadline": "副标题"})
    with patch("llm_client.generate", return_value=reply):
        assert generate_daily_insight(_PAPERS, _NEWS, _PRODUCTS) is None


def test_transport_failure_returns_none() -> None:
    with patch("llm_client.generate", side_effect=requests.ConnectionError("down")):
        assert generate_daily_insight(_PAPERS, _NEWS, _PRODUCTS) is None


def test_malformed_json_returns_none() -> None:
    with patch("llm_client.generate", return_value="sorry, I cannot help"):
        assert generate_daily_insight([], [], []) is None
