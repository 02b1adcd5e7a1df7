"""
Analysis models shared by the parser, the processor and the Slack digest.
Keeps the result structures separate from transport concerns.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class Significance(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class MetricAnalysis(BaseModel):
    """Structured analysis returned by the model for one metric."""

    model_config = ConfigDict(populate_by_name=True)

    metric_name: str = Field(alias="metricName")
    section_url: str = Field(default="", alias="sectionUrl")
    frequency: str = ""
    historical_period: str = Field(default="", alias="historicalPeriod")
    latest_value: str = Field(default="", alias="latestValue")
    absolute_change: str = Field(default="", alias="absoluteChange")
    percentage_change: str = Field(default="", alias="percentageChange")
    historical_average: str = Field(default="", alias="historicalAverage")
    historical_trend: str = Field(default="", alias="historicalTrend")
    technical_analysis: str = Field(default="", alias="technicalAnalysis")
    significance: Significance

    @field_validator("significance", mode="before")
    @classmethod
    def _normalize_significance(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator(
        "section_url",
        "frequency",
        "historical_period",
        "latest_value",
        "absolute_change",
        "percentage_change",
        "historical_average",
        "historical_trend",
        "technical_analysis",
        mode="before",
    )
    @classmethod
    def _display_text(cls, value):
        # null means "not computable" (e.g. a change from zero)
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


@dataclass
class AnalysisError:
    """Error record carried through the digest in place of an analysis."""
    metric_name: str
    error: str
    raw_result: Any = None
    cleaned_result: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error, "rawResult": self.raw_result}
        if self.cleaned_result is not None:
            payload["cleanedResult"] = self.cleaned_result
        if self.reason is not None:
            payload["reason"] = self.reason
        return payload


AnalysisResult = Union[MetricAnalysis, AnalysisError]


# ── Significance thresholds ────────────────────────────────────────────

def classify_significance(absolute_change: float, historical_average: float) -> Significance:
    """
    Tier of a change relative to the historical baseline.

    Boundaries belong to the lower tier: exactly 0.5x the average is LOW,
    exactly 1x is MEDIUM, exactly 2x is HIGH.
    """
    change = abs(absolute_change)
    baseline = abs(historical_average)
    if change <= 0.5 * baseline:
        return Significance.LOW
    if change <= baseline:
        return Significance.MEDIUM
    if change <= 2 * baseline:
        return Significance.HIGH
    return Significance.CRITICAL


_SUFFIX_MULTIPLIERS = {"K": 1e3, "M": 1e6, "B": 1e9, "T": 1e12}
_NUMBER_RE = re.compile(
    r"(?P<sign>[+-])?[^\d+-]{0,3}?(?P<number>\d[\d,]*(?:\.\d+)?)\s?(?P<suffix>[KMBTkmbt](?![A-Za-z]))?"
)


def parse_formatted_number(text: Any) -> Optional[float]:
    """
    Reads a number back out of a display string such as "$59.2M", "-1,234 ETH"
    or "+15.25%". Returns None when no number is present.
    """
    if isinstance(text, (int, float)) and not isinstance(text, bool):
        return float(text)
    if not isinstance(text, str):
        return None
    match = _NUMBER_RE.search(text.strip())
    if not match:
        return None
    value = float(match.group("number").replace(",", ""))
    suffix = match.group("suffix")
    if suffix:
        value *= _SUFFIX_MULTIPLIERS[suffix.upper()]
    if match.group("sign") == "-":
        value = -value
    return value


def reconcile_significance(analysis: MetricAnalysis) -> MetricAnalysis:
    """Overrides the reported tier when it contradicts the thresholds."""
    change = parse_formatted_number(analysis.absolute_change)
    average = parse_formatted_number(analysis.historical_average)
    if change is None or average is None:
        return analysis

    expected = classify_significance(change, average)
    if expected != analysis.significance:
        logger.warning(
            f"Significance for {analysis.metric_name} reported as {analysis.significance.value}, "
            f"thresholds give {expected.value} (change={change}, average={average}); correcting"
        )
        return analysis.model_copy(update={"significance": expected})
    return analysis
