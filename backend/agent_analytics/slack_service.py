"""
Slack service: posts the metric digest through an incoming webhook.
"""

import logging
import time
from datetime import datetime
from typing import Optional, Sequence

import httpx

from agent_analytics.analysis_models import AnalysisResult, MetricAnalysis
from agent_analytics.blocks import build_digest_blocks, has_content
from agent_analytics.errors import SlackDeliveryError
from agent_analytics.settings import Settings

logger = logging.getLogger(__name__)


class SlackWebhookSink:
    """Sends one Block Kit message per run to a Slack incoming webhook."""

    def __init__(self, webhook_url: str, timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "SlackWebhookSink":
        return cls(settings.slack_webhook_url, timeout=settings.http_timeout)

    async def send_digest(self, results: Sequence[AnalysisResult], now: Optional[datetime] = None) -> bool:
        """
        Builds and sends the digest.

        Returns True when a message was sent, False when there was nothing to
        send. Raises SlackDeliveryError when the webhook rejects the payload.
        """
        logger.info(f"Preparing to send metric analysis to Slack ({len(results)} results)")
        for result in results:
            if isinstance(result, MetricAnalysis):
                logger.debug(f"Building Slack blocks for metric: {result.metric_name} ({result.significance.value})")

        blocks = build_digest_blocks(results, now or datetime.now())
        if not has_content(blocks):
            logger.warning("No metrics data provided to send to Slack")
            return False

        payload = {"blocks": [block.to_dict() for block in blocks]}
        started = time.monotonic()
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(self.webhook_url, json=payload)
        duration_ms = int((time.monotonic() - started) * 1000)

        if resp.status_code >= 400:
            raise SlackDeliveryError(f"Slack webhook returned {resp.status_code}: {resp.text[:200]}")

        logger.info(f"Sent Slack message with {len(results)} metrics ({len(blocks)} blocks, {duration_ms}ms)")
        return True
