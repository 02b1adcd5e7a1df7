import asyncio
import json
from datetime import datetime

import httpx
import pytest

from agent_analytics.analysis_models import AnalysisError, MetricAnalysis
from agent_analytics.blocks import (
    ContextBlock,
    DividerBlock,
    HeaderBlock,
    SectionBlock,
    build_digest_blocks,
    has_content,
)
from agent_analytics.errors import SlackDeliveryError
from agent_analytics.slack_service import SlackWebhookSink
from conftest import analysis_payload

NOW = datetime(2024, 8, 17, 17, 30, 0)
WEBHOOK = "https://hooks.slack.com/services/T/B/X"


def _analysis(name="Kaia Weekly Trading Volume", **overrides):
    return MetricAnalysis.model_validate(analysis_payload(name, **overrides))


def test_digest_layout_for_analysis_and_error():
    error = AnalysisError(metric_name="TVL", error="Failed to parse JSON for metric TVL", reason="Expecting value")
    blocks = build_digest_blocks([_analysis(significance="HIGH"), error], NOW)

    assert isinstance(blocks[0], HeaderBlock)
    assert blocks[0].to_dict()["text"]["text"] == "Date: Aug 17, 2024, 05:30:00 PM"
    assert isinstance(blocks[1], DividerBlock)
    assert [type(b) for b in blocks[2:7]] == [ContextBlock, SectionBlock, SectionBlock, SectionBlock, DividerBlock]

    title = blocks[3].to_dict()
    assert title["text"]["text"] == "*Kaia Weekly Trading Volume*"
    assert title["accessory"]["url"] == "https://dune.com/queries/1"
    assert title["accessory"]["action_id"] == "view_dune_Kaia_Weekly_Trading_Volume"
    assert "HIGH" in blocks[2].to_dict()["elements"][0]["text"]
    assert len(blocks[4].to_dict()["fields"]) == 4

    error_text = [b.to_dict() for b in blocks[7:]]
    assert error_text[1]["text"]["text"] == "*TVL*"
    assert "Failed to parse JSON for metric TVL" in error_text[2]["text"]["text"]


def test_long_section_text_is_truncated():
    block = SectionBlock(text="x" * 5000).to_dict()
    assert len(block["text"]["text"]) == 3000


def test_empty_digest_has_no_content():
    assert has_content(build_digest_blocks([], NOW)) is False


def test_send_digest_posts_blocks_once():
    requests = []

    def handler(request):
        requests.append(json.loads(request.content))
        return httpx.Response(200, text="ok")

    sink = SlackWebhookSink(WEBHOOK, transport=httpx.MockTransport(handler))
    sent = asyncio.run(sink.send_digest([_analysis()], now=NOW))

    assert sent is True
    assert len(requests) == 1
    types = [b["type"] for b in requests[0]["blocks"]]
    assert types == ["header", "divider", "context", "section", "section", "section", "divider"]


def test_send_digest_skips_empty_batch():
    def handler(request):
        raise AssertionError("webhook must not be called")

    sink = SlackWebhookSink(WEBHOOK, transport=httpx.MockTransport(handler))
    assert asyncio.run(sink.send_digest([], now=NOW)) is False


def test_rejected_webhook_raises():
    sink = SlackWebhookSink(WEBHOOK, transport=httpx.MockTransport(lambda r: httpx.Response(400, text="invalid_blocks")))
    with pytest.raises(SlackDeliveryError):
        asyncio.run(sink.send_digest([_analysis()], now=NOW))
