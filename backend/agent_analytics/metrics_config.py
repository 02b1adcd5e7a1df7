"""
Metrics configuration: loads metrics.yaml into immutable metric descriptors.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from agent_analytics.errors import MetricsConfigError
from agent_analytics.periods import HistoricalPeriod, parse_period
from agent_analytics.settings import DEFAULT_METRICS_PATH

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("name", "query_id", "section_url", "frequency", "historical_period", "limit")


@dataclass(frozen=True)
class MetricDescriptor:
    """A tracked metric: which query to pull and how to analyze it."""
    name: str
    query_id: int
    section_url: str
    frequency: str
    historical_period: HistoricalPeriod
    limit: int
    additional_prompt: Optional[str] = None


def _build_descriptor(index: int, entry: Dict[str, Any]) -> MetricDescriptor:
    label = entry.get("name") or f"#{index}"
    missing = [key for key in REQUIRED_KEYS if key not in entry]
    if missing:
        raise MetricsConfigError(f"Metric '{label}' is missing keys: {missing}")

    try:
        period = parse_period(entry["historical_period"])
        limit = int(entry["limit"])
        query_id = int(entry["query_id"])
    except (TypeError, ValueError) as e:
        raise MetricsConfigError(f"Metric '{label}' is invalid: {e}") from e

    if limit <= 0:
        raise MetricsConfigError(f"Metric '{label}' must have a positive limit, got {limit}")

    additional_prompt = entry.get("additional_prompt")
    return MetricDescriptor(
        name=str(entry["name"]),
        query_id=query_id,
        section_url=str(entry["section_url"]),
        frequency=str(entry["frequency"]),
        historical_period=period,
        limit=limit,
        additional_prompt=str(additional_prompt).strip() if additional_prompt else None,
    )


def load_metrics(path: Union[str, Path, None] = None) -> List[MetricDescriptor]:
    """
    Loads the metrics list from a YAML file.

    Args:
        path: metrics.yaml location; the packaged file when omitted

    Returns:
        Descriptors in file order (the digest keeps this order)
    """
    config_path = Path(path) if path else DEFAULT_METRICS_PATH
    if not config_path.exists():
        raise MetricsConfigError(f"Metrics config not found: {config_path}")

    logger.info(f"Loading metrics configuration from {config_path}")
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise MetricsConfigError(f"Could not parse {config_path}: {e}") from e

    entries = data.get("metrics") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise MetricsConfigError(f"{config_path} must contain a 'metrics' list")

    metrics = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise MetricsConfigError(f"Metric #{index} must be a mapping")
        metrics.append(_build_descriptor(index, entry))

    logger.info(f"Loaded {len(metrics)} metrics")
    return metrics
