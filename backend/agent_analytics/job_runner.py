"""
Analytics job: analyze every configured metric concurrently and post the
digest, either once or on a cron schedule.
"""

import asyncio
import logging
from datetime import date
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from agent_analytics.analysis_models import AnalysisError, AnalysisResult, MetricAnalysis
from agent_analytics.errors import log_errors
from agent_analytics.metric_processor import MetricProcessor
from agent_analytics.metrics_config import MetricDescriptor

logger = logging.getLogger(__name__)

DEFAULT_CRON_SCHEDULE = "0 10 * * 1"


class DigestSink(Protocol):
    async def send_digest(self, results: Sequence[AnalysisResult]) -> bool:
        ...


def _error_record(metric: MetricDescriptor, error: BaseException) -> AnalysisError:
    return AnalysisError(
        metric_name=metric.name,
        error=f"Failed to process metric {metric.name}",
        reason=f"{type(error).__name__}: {error}",
    )


@log_errors("Main Process")
async def run_job(
    metrics: Sequence[MetricDescriptor],
    processor: MetricProcessor,
    sink: DigestSink,
    today: Optional[date] = None,
) -> List[AnalysisResult]:
    """
    Processes all metrics concurrently and sends one digest.

    Results keep the configured metric order. A metric that raises is
    reported as an AnalysisError instead of aborting the batch; a failing
    sink propagates.
    """
    logger.info(f"Running analytics job for {len(metrics)} metrics")
    logger.debug(f"Query ids: {[m.query_id for m in metrics]}")

    outcomes = await asyncio.gather(
        *(processor.process(metric, today) for metric in metrics),
        return_exceptions=True,
    )

    results: List[AnalysisResult] = []
    for metric, outcome in zip(metrics, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            results.append(_error_record(metric, outcome))
        else:
            results.append(outcome)

    succeeded = sum(1 for r in results if isinstance(r, MetricAnalysis))
    logger.info(f"Completed processing: {succeeded} succeeded, {len(results) - succeeded} failed")

    await sink.send_digest(results)
    logger.info("Analytics job completed")
    return results


_CRON_DAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def _cron_day_of_week(field: str) -> str:
    """
    Rewrites numeric day-of-week items as day names. Cron counts from
    0 = Sunday (7 is Sunday too) while APScheduler counts from 0 = Monday.
    Ranges and steps are expanded into explicit lists; names pass through.
    """
    if field == "*":
        return field

    days: List[str] = []
    for item in field.split(","):
        base, _, step = item.partition("/")
        if base == "*":
            first, last = 0, 6
        elif base.isdigit():
            first = int(base)
            last = 6 if step else first
        elif "-" in base and all(part.isdigit() for part in base.split("-", 1)):
            first, last = (int(part) for part in base.split("-", 1))
        else:
            days.append(item)
            continue
        if first > last or last > 7:
            raise ValueError(f"Invalid day-of-week item '{item}'")
        days.extend(_CRON_DAY_NAMES[day % 7] for day in range(first, last + 1, int(step or 1)))
    return ",".join(dict.fromkeys(days))


def _crontab_trigger(cron_schedule: str, timezone: str) -> CronTrigger:
    fields = cron_schedule.split()
    if len(fields) == 5:
        fields[4] = _cron_day_of_week(fields[4])
    return CronTrigger.from_crontab(" ".join(fields), timezone=timezone)


def build_trigger(cron_schedule: str, timezone: str) -> CronTrigger:
    """Cron trigger for the schedule, or the default schedule if it does not parse."""
    try:
        return _crontab_trigger(cron_schedule, timezone)
    except ValueError as e:
        logger.error(f"Invalid cron schedule '{cron_schedule}' ({e}); using default '{DEFAULT_CRON_SCHEDULE}'")
        return _crontab_trigger(DEFAULT_CRON_SCHEDULE, timezone)


class JobScheduler:
    """
    Runs the job once when no cron schedule is configured. Otherwise runs it
    immediately and then on every cron tick until stopped.

    The startup run and a scheduled run are not prevented from overlapping;
    the schedule interval is expected to be far longer than a run.
    """

    def __init__(self, job: Callable[[], Awaitable[object]], cron_schedule: Optional[str], timezone: str):
        self.job = job
        self.cron_schedule = cron_schedule
        self.timezone = timezone

    async def execute(self) -> bool:
        """One run; failures are already logged by the job, so only report them."""
        try:
            await self.job()
        except Exception:
            logger.error("Analytics job failed; waiting for the next run")
            return False
        return True

    async def serve(self, stop_event: Optional[asyncio.Event] = None) -> None:
        trigger = build_trigger(self.cron_schedule, self.timezone)
        scheduler = AsyncIOScheduler(timezone=self.timezone)
        scheduler.add_job(self.execute, trigger, id="analytics_job", max_instances=1, coalesce=True)
        scheduler.start()
        logger.info(f"Starting Agent Analytics service (schedule='{self.cron_schedule}', timezone={self.timezone})")
        try:
            await self.execute()
            await (stop_event or asyncio.Event()).wait()
        finally:
            scheduler.shutdown(wait=False)

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> bool:
        if not self.cron_schedule:
            logger.warning("No cron schedule provided. Running immediately.")
            return await self.execute()
        await self.serve(stop_event)
        return True
