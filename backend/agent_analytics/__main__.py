"""
Agent Analytics entry point.

Fetches the latest data of every configured metric from Dune, asks Gemini to
analyze it against its historical trend, and posts the digest to Slack.

Usage:
  python -m agent_analytics [--once] [--metrics path/to/metrics.yaml]
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from agent_analytics.connectors import DuneConnector
from agent_analytics.errors import ConfigError, install_global_error_handlers
from agent_analytics.job_runner import JobScheduler, run_job
from agent_analytics.llm_service import GeminiService
from agent_analytics.logging_setup import configure_logging
from agent_analytics.metric_processor import MetricProcessor
from agent_analytics.metrics_config import load_metrics
from agent_analytics.settings import Settings
from agent_analytics.slack_service import SlackWebhookSink

logger = logging.getLogger("agent_analytics")


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="agent-analytics", description=__doc__.strip().splitlines()[0])
    parser.add_argument("--once", action="store_true", help="run a single job and exit, ignoring CRON_SCHEDULE")
    parser.add_argument("--metrics", help="metrics.yaml to use instead of METRICS_CONFIG / the packaged file")
    return parser.parse_args(argv)


async def _serve(settings: Settings, cron_schedule: Optional[str], metrics_path) -> bool:
    install_global_error_handlers(asyncio.get_running_loop())

    metrics = load_metrics(metrics_path)
    processor = MetricProcessor(
        DuneConnector.from_settings(settings),
        GeminiService.from_settings(settings),
        settings.gemini_model,
    )
    sink = SlackWebhookSink.from_settings(settings)

    async def job():
        return await run_job(metrics, processor, sink)

    scheduler = JobScheduler(job, cron_schedule, settings.timezone)
    return await scheduler.run()


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    load_dotenv()

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        configure_logging()
        logger.error(f"Configuration error: {e}")
        return 1

    configure_logging(settings.debug_logs)
    install_global_error_handlers()
    logger.debug(f"Configuration loaded (debug={settings.debug_logs}, model={settings.gemini_model})")

    cron_schedule = None if args.once else settings.cron_schedule
    try:
        ok = asyncio.run(_serve(settings, cron_schedule, args.metrics or settings.metrics_path))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
        return 0
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
