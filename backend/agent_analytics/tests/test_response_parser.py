import json

import pytest

from agent_analytics.analysis_models import AnalysisError, MetricAnalysis, Significance
from agent_analytics.response_parser import parse_analysis_response, strip_code_fence


def test_parses_plain_json(analysis_json):
    result = parse_analysis_response(analysis_json("TVL", significance="HIGH"), "TVL")
    assert isinstance(result, MetricAnalysis)
    assert result.metric_name == "TVL"
    assert result.significance == Significance.HIGH
    assert result.latest_value == "$1.2M"


@pytest.mark.parametrize(
    "template",
    [
        "```json\n{body}\n```",
        "```json{body}```",
        "  ```JSON\n{body}\n```\n",
        "```\n{body}\n```",
    ],
)
def test_fenced_json_parses_like_unwrapped_json(analysis_json, template):
    body = analysis_json("TVL")
    fenced = parse_analysis_response(template.format(body=body), "TVL")
    direct = parse_analysis_response(body, "TVL")
    assert isinstance(direct, MetricAnalysis)
    assert fenced == direct


def test_strip_code_fence_leaves_plain_text_alone():
    assert strip_code_fence('  {"a": 1}\n') == '{"a": 1}'


def test_null_result_is_non_string_error_record():
    result = parse_analysis_response(None, "TVL")
    assert isinstance(result, AnalysisError)
    assert result.to_dict() == {
        "error": "Received non-string result for metric TVL",
        "rawResult": None,
    }


def test_invalid_json_keeps_raw_and_cleaned_text():
    raw = "```json\n{not json}\n```"
    result = parse_analysis_response(raw, "TVL")
    assert isinstance(result, AnalysisError)
    assert result.error == "Failed to parse JSON for metric TVL"
    assert result.raw_result == raw
    assert result.cleaned_result == "{not json}"
    assert result.reason


def test_unknown_significance_is_an_error_record(analysis_json):
    result = parse_analysis_response(analysis_json("TVL", significance="LOW | MEDIUM | HIGH | CRITICAL"), "TVL")
    assert isinstance(result, AnalysisError)
    assert result.error == "Invalid analysis payload for metric TVL"


def test_numeric_values_are_accepted_as_text(analysis_json):
    result = parse_analysis_response(analysis_json("TVL", latestValue=1200, significance="medium"), "TVL")
    assert isinstance(result, MetricAnalysis)
    assert result.latest_value == "1200"
    assert result.significance == Significance.MEDIUM


def test_missing_metric_name_is_filled_in():
    result = parse_analysis_response(json.dumps({"significance": "LOW"}), "TVL")
    assert isinstance(result, MetricAnalysis)
    assert result.metric_name == "TVL"


@pytest.mark.parametrize(
    "raw",
    [None, 42, 3.5, b"{}", {"significance": "LOW"}, ["x"], "", "   ", "```json\n```", "[1, 2]",
     "null", '"text"', "{", "[" * 50000, '{"significance": null}'],
)
def test_never_raises(raw):
    result = parse_analysis_response(raw, "TVL")
    assert isinstance(result, (MetricAnalysis, AnalysisError))


def test_null_display_fields_keep_the_analysis(analysis_json):
    raw = analysis_json("TVL", percentageChange=None, absoluteChange=None, historicalTrend=None, metricName=None)
    result = parse_analysis_response(raw, "TVL")
    assert isinstance(result, MetricAnalysis)
    assert result.metric_name == "TVL"
    assert result.percentage_change == ""
    assert result.absolute_change == ""
    assert result.to_dict()["historicalTrend"] == ""
