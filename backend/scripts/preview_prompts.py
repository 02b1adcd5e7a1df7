"""
Offline preview of the configured metrics: period phrases and prompts.

Usage:
  python scripts/preview_prompts.py --today 2024-03-15
  python scripts/preview_prompts.py --metrics metrics.yaml --full
"""
from __future__ import annotations

import argparse
from datetime import date

from agent_analytics.metrics_config import load_metrics
from agent_analytics.periods import format_period, utc_today
from agent_analytics.prompt_builder import build_analysis_prompt


def main() -> None:
    parser = argparse.ArgumentParser(description="Preview period phrases and analysis prompts")
    parser.add_argument("--metrics", default=None, help="metrics.yaml path (packaged file by default)")
    parser.add_argument("--today", default=None, help="reference date, YYYY-MM-DD (UTC today by default)")
    parser.add_argument("--full", action="store_true", help="print the whole prompt for each metric")
    args = parser.parse_args()

    today = date.fromisoformat(args.today) if args.today else utc_today()
    for metric in load_metrics(args.metrics):
        print(f"{metric.name} [query {metric.query_id}, last {metric.limit} rows]")
        print(f"  {format_period(metric.historical_period, today)}")
        if args.full:
            print(build_analysis_prompt(metric, "<rows from Dune>", today))
            print("-" * 80)


if __name__ == "__main__":
    main()
