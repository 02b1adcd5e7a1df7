"""
Builds the analysis request sent to the model for one metric.

The prompt is a fixed template: the model is told how to compute the recent
change and the historical baseline, how to format numbers, how to pick the
significance tier, and which JSON shape to answer with.
"""

import json
from datetime import date
from typing import Optional

from agent_analytics.metrics_config import MetricDescriptor
from agent_analytics.periods import format_period, utc_today

SYSTEM_INSTRUCTION = (
    "You are an expert AI blockchain data analyst. Your knowledge includes all standard data "
    "analysis techniques and deep expertise in blockchain ecosystems. You excel at retrieving data "
    "from Dune Analytics and performing technical analysis on it. Focus on providing accurate, "
    "data-driven blockchain insights based on Dune Analytics data."
)

NO_DATA_PLACEHOLDER = "No data available"


def _json_text(value: str) -> str:
    """Escapes a value for use inside a quoted JSON string."""
    return json.dumps(value)[1:-1]

FORMATTING_RULES = """Format all numerical values as follows:
- Round all numbers to the nearest integer, except for percentage changes (e.g., 992.6051817027819 → 993, but 9.123456% → 9.12%)
- Add appropriate units to all numbers (e.g., $, ETH, transactions, users)
- Use the international number system with commas (e.g., 1,234,567)
- For large numbers, use abbreviated formats: thousands (K), millions (M), billions (B), etc. (e.g., $59,239,487 → $59.2M)
- Show percentage changes with up to 2 decimal places (e.g., +15.25%) along with the sign (+ or -)"""

SIGNIFICANCE_RULES = """Determine the significance level based on the following criteria:
    - LOW: If abs(recent_absolute_change) <= 0.5 * historical_average
    - MEDIUM: If 0.5 * historical_average < abs(recent_absolute_change) <= historical_average
    - HIGH: If historical_average < abs(recent_absolute_change) <= 2 * historical_average
    - CRITICAL: If abs(recent_absolute_change) > 2 * historical_average"""


def build_analysis_prompt(metric: MetricDescriptor, data: Optional[str], today: Optional[date] = None) -> str:
    """
    Assembles the analysis prompt.

    Args:
        metric: Metric descriptor from metrics.yaml
        data: Raw rows fetched from the data source, or None when the fetch failed
        today: Reference date for the period phrase; defaults to the current UTC date

    Returns:
        The prompt text
    """
    if today is None:
        today = utc_today()
    period_phrase = format_period(metric.historical_period, today)
    extra_instruction = metric.additional_prompt or ""
    data_text = data if data else NO_DATA_PLACEHOLDER

    return f"""
You are provided with the latest time-series data for the metric: {metric.name}. Your task is to analyze this data and provide insights in JSON format.

Follow these steps:
1.  Identify the two most recent data points from the provided data (let's call them 'latest_value' and 'previous_value'). Today's date is '{today.isoformat()}'. The latest data point is the most recent one, and the previous data point is the one before it.
2.  Calculate the absolute change between these two points: 'recent_absolute_change' = latest_value - previous_value.
3.  Calculate the percentage change: 'recent_percentage_change' = (recent_absolute_change / previous_value) * 100. Handle division by zero if previous_value is 0.
4.  Analyze the historical trend based on metric frequency:
    - The metric frequency is '{metric.frequency}' and the historical period is {period_phrase}; extract all data points within this period.
    - Calculate the trend between consecutive data points throughout the entire historical period.
    - Identify any patterns, cycles, or anomalies in the historical trend.
    - Calculate the 'historical_average' value across the entire period.
5.  Compare the most recent trend with the historical trend:
    - Determine if the recent change is following the established historical pattern or deviating from it.
    - Identify if the latest data point represents an acceleration, deceleration, or reversal of the historical trend.
6.  Based on this comprehensive trend analysis, provide a concise technical analysis (around 20-30 words) that discusses:
    - How the latest change compares to the historical trend
    - Whether the metric is showing unusual behavior compared to its historical pattern
    - Any potential explanations for significant deviations from the established trend
7.  {SIGNIFICANCE_RULES}

{FORMATTING_RULES}

{extra_instruction}

Output your response strictly in the following JSON format:
{{
    "metricName": "{_json_text(metric.name)}",
    "sectionUrl": "{_json_text(metric.section_url)}",
    "frequency": "{_json_text(metric.frequency)}",
    "historicalPeriod": "{_json_text(period_phrase)}",
    "latestValue": "The most recent data point value with proper formatting",
    "absoluteChange": "The calculated recent_absolute_change with proper formatting",
    "percentageChange": "The calculated recent_percentage_change with proper formatting (e.g., '+15.25%' or '-5.01%')",
    "historicalAverage": "The calculated historical_average with proper formatting",
    "historicalTrend": "A brief description of the historical trend pattern",
    "technicalAnalysis": "Your comprehensive technical analysis comparing recent and historical trends",
    "significance": "LOW | MEDIUM | HIGH | CRITICAL"
}}

Here is the data:
{data_text}
"""
