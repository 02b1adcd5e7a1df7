"""
Turns the model's raw text into a MetricAnalysis, or an AnalysisError that
keeps the raw and cleaned text for diagnostics. Nothing here raises.
"""

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from agent_analytics.analysis_models import AnalysisError, AnalysisResult, MetricAnalysis

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\n?```$")


def strip_code_fence(text: str) -> str:
    """Removes surrounding whitespace and an optional ```json ... ``` fence."""
    cleaned = text.strip()
    cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
    cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_analysis_response(raw_result: Any, metric_name: str) -> AnalysisResult:
    """
    Parses the model response for one metric.

    Args:
        raw_result: Text returned by the model (may be None)
        metric_name: Metric name, used in error messages

    Returns:
        MetricAnalysis on success, AnalysisError otherwise
    """
    logger.debug(
        f"Parsing model response for metric: {metric_name} "
        f"(type={type(raw_result).__name__}, length={len(raw_result) if isinstance(raw_result, str) else 0})"
    )

    if not isinstance(raw_result, str):
        message = f"Received non-string result for metric {metric_name}"
        logger.error(f"{message}: {raw_result!r}")
        return AnalysisError(metric_name=metric_name, error=message, raw_result=raw_result)

    cleaned_result = strip_code_fence(raw_result)

    try:
        payload = json.loads(cleaned_result)
    except (json.JSONDecodeError, RecursionError) as e:
        message = f"Failed to parse JSON for metric {metric_name}"
        logger.error(f"{message}: {e}; raw text: {raw_result[:400]}")
        return AnalysisError(
            metric_name=metric_name,
            error=message,
            raw_result=raw_result,
            cleaned_result=cleaned_result,
            reason=str(e),
        )

    if not isinstance(payload, dict):
        message = f"Invalid analysis payload for metric {metric_name}"
        logger.error(f"{message}: expected a JSON object, got {type(payload).__name__}")
        return AnalysisError(
            metric_name=metric_name,
            error=message,
            raw_result=raw_result,
            cleaned_result=cleaned_result,
            reason=f"expected a JSON object, got {type(payload).__name__}",
        )

    if payload.get("metricName") is None:
        payload["metricName"] = metric_name
    try:
        analysis = MetricAnalysis.model_validate(payload)
    except ValidationError as e:
        message = f"Invalid analysis payload for metric {metric_name}"
        logger.error(f"{message}: {e}")
        return AnalysisError(
            metric_name=metric_name,
            error=message,
            raw_result=raw_result,
            cleaned_result=cleaned_result,
            reason=str(e),
        )

    logger.debug(
        f"Parsed response for metric: {metric_name} "
        f"(significance={analysis.significance.value}, latestValue={analysis.latest_value})"
    )
    return analysis
