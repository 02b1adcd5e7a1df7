"""
Slack Block Kit building blocks used by the digest.

Only the four block types the digest needs are modelled; each serializes to
the Block Kit JSON shape at the webhook boundary via to_dict().
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from agent_analytics.analysis_models import AnalysisError, AnalysisResult, MetricAnalysis, Significance

HEADER_TEXT_LIMIT = 150
SECTION_TEXT_LIMIT = 3000
FIELD_TEXT_LIMIT = 2000
# header + divider
PLACEHOLDER_BLOCK_COUNT = 2

SIGNIFICANCE_EMOJI = {
    Significance.LOW: ":large_green_circle:",
    Significance.MEDIUM: ":large_yellow_circle:",
    Significance.HIGH: ":large_orange_circle:",
    Significance.CRITICAL: ":red_circle:",
}


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


@dataclass(frozen=True)
class LinkButton:
    text: str
    url: str
    action_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "button",
            "text": {"type": "plain_text", "text": self.text, "emoji": True},
            "url": self.url,
            "action_id": self.action_id,
        }


@dataclass(frozen=True)
class HeaderBlock:
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "header", "text": {"type": "plain_text", "text": _truncate(self.text, HEADER_TEXT_LIMIT)}}


@dataclass(frozen=True)
class SectionBlock:
    """mrkdwn section; `fields` render as a two-column grid."""
    text: Optional[str] = None
    fields: Sequence[str] = field(default_factory=tuple)
    accessory: Optional[LinkButton] = None

    def to_dict(self) -> Dict[str, Any]:
        block: Dict[str, Any] = {"type": "section"}
        if self.text is not None:
            block["text"] = {"type": "mrkdwn", "text": _truncate(self.text, SECTION_TEXT_LIMIT)}
        if self.fields:
            block["fields"] = [{"type": "mrkdwn", "text": _truncate(f, FIELD_TEXT_LIMIT)} for f in self.fields]
        if self.accessory is not None:
            block["accessory"] = self.accessory.to_dict()
        return block


@dataclass(frozen=True)
class ContextBlock:
    elements: Sequence[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "context", "elements": [{"type": "mrkdwn", "text": e} for e in self.elements]}


@dataclass(frozen=True)
class DividerBlock:
    def to_dict(self) -> Dict[str, Any]:
        return {"type": "divider"}


Block = Union[HeaderBlock, SectionBlock, ContextBlock, DividerBlock]


# ── Digest layout ──────────────────────────────────────────────────────

def _action_id(metric_name: str) -> str:
    return "view_dune_" + re.sub(r"\s+", "_", metric_name)


def _analysis_blocks(analysis: MetricAnalysis) -> List[Block]:
    emoji = SIGNIFICANCE_EMOJI[analysis.significance]
    button = None
    if analysis.section_url:
        button = LinkButton("View on Dune", analysis.section_url, _action_id(analysis.metric_name))
    title = SectionBlock(text=f"*{analysis.metric_name}*", accessory=button)
    return [
        ContextBlock([f"*Significance:* {emoji} {analysis.significance.value}"]),
        title,
        SectionBlock(fields=(
            f"*Latest value:*\n{analysis.latest_value or 'n/a'}",
            f"*Change:*\n{analysis.absolute_change or 'n/a'} ({analysis.percentage_change or 'n/a'})",
            f"*Historical average:*\n{analysis.historical_average or 'n/a'}",
            f"*Period:*\n{analysis.historical_period or 'n/a'}",
        )),
        SectionBlock(text=analysis.technical_analysis or "_No analysis provided._"),
        DividerBlock(),
    ]


def _error_blocks(error: AnalysisError) -> List[Block]:
    detail = f"Analysis unavailable: {error.error}"
    if error.reason:
        detail += f"\n```{_truncate(error.reason, 500)}```"
    return [
        ContextBlock([":warning: *Significance:* N/A"]),
        SectionBlock(text=f"*{error.metric_name}*"),
        SectionBlock(text=detail),
        DividerBlock(),
    ]


def build_digest_blocks(results: Sequence[AnalysisResult], now: datetime) -> List[Block]:
    """
    Lays out the digest: a dated header and divider, then a group of blocks
    per metric result in the order given.
    """
    blocks: List[Block] = [
        HeaderBlock(f"Date: {now.strftime('%b %d, %Y, %I:%M:%S %p')}"),
        DividerBlock(),
    ]
    for result in results:
        if isinstance(result, MetricAnalysis):
            blocks.extend(_analysis_blocks(result))
        else:
            blocks.extend(_error_blocks(result))
    return blocks


def has_content(blocks: Sequence[Block]) -> bool:
    """False when the digest holds only the header and its divider."""
    return len(blocks) > PLACEHOLDER_BLOCK_COUNT
