import json

import pytest

from agent_analytics.metrics_config import MetricDescriptor
from agent_analytics.periods import RelativeRange


def analysis_payload(metric_name: str, **overrides) -> dict:
    payload = {
        "metricName": metric_name,
        "sectionUrl": "https://dune.com/queries/1",
        "frequency": "week",
        "historicalPeriod": "for month February",
        "latestValue": "$1.2M",
        "absoluteChange": "+$100K",
        "percentageChange": "+9.09%",
        "historicalAverage": "$1.1M",
        "historicalTrend": "Steady growth",
        "technicalAnalysis": "Revenue keeps climbing in line with the monthly trend.",
        "significance": "LOW",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_metric():
    def _make(name="Weekly Revenue", query_id=1, period=None, limit=8, additional_prompt=None):
        return MetricDescriptor(
            name=name,
            query_id=query_id,
            section_url=f"https://dune.com/queries/{query_id}",
            frequency="week",
            historical_period=period or RelativeRange(count=1, unit="month"),
            limit=limit,
            additional_prompt=additional_prompt,
        )
    return _make


@pytest.fixture
def analysis_json():
    def _json(metric_name, **overrides):
        return json.dumps(analysis_payload(metric_name, **overrides))
    return _json
