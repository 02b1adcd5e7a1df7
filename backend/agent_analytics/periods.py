"""
Historical period descriptors and their human-readable phrasing.

Periods are declared in metrics.yaml and rendered into a phrase such as
"for month February" or "for dates 2024-03-12 to 2024-03-14", anchored to
the current UTC date. The phrase is embedded in the analysis prompt so the
model knows which slice of the series is the historical baseline.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import MINYEAR, date, datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple, Union

logger = logging.getLogger(__name__)

INVALID_RANGE = "invalid range"
UNKNOWN_PERIOD = "unknown period"

RANGE_UNITS = ("day", "week", "month", "year")
# configured relative ranges may reach back at most a century
MAX_RANGE_COUNT = {"day": 36600, "week": 5200, "month": 1200, "year": 100}
NAMED_PERIODS = (
    "yesterday",
    "today",
    "lastWeek",
    "thisWeek",
    "lastMonth",
    "thisMonth",
    "lastYear",
    "thisYear",
)


@dataclass(frozen=True)
class RelativeRange:
    """The last `count` completed days/weeks/months/years."""
    count: int
    unit: str


@dataclass(frozen=True)
class RelativeNamedPeriod:
    period: str


@dataclass(frozen=True)
class SpecificMonth:
    year: int
    month: int


@dataclass(frozen=True)
class SpecificYear:
    year: int


@dataclass(frozen=True)
class SpecificDate:
    date: date


HistoricalPeriod = Union[RelativeRange, RelativeNamedPeriod, SpecificMonth, SpecificYear, SpecificDate]


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


# ── Parsing from configuration ─────────────────────────────────────────

def parse_period(raw: Dict[str, Any]) -> HistoricalPeriod:
    """
    Builds a period from its configuration mapping.

    Raises ValueError when the mapping does not describe a known variant.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Period must be a mapping, got {type(raw).__name__}")

    period_type = raw.get("type")
    try:
        if period_type == "relative":
            unit = str(raw["unit"])
            if unit not in RANGE_UNITS:
                raise ValueError(f"Unknown range unit '{unit}'. Available: {list(RANGE_UNITS)}")
            count = int(raw["count"])
            if count > MAX_RANGE_COUNT[unit]:
                raise ValueError(f"Range of {count} {unit}s exceeds the maximum of {MAX_RANGE_COUNT[unit]}")
            return RelativeRange(count=count, unit=unit)
        if period_type == "relativeSpecific":
            name = str(raw["period"])
            if name not in NAMED_PERIODS:
                raise ValueError(f"Unknown named period '{name}'. Available: {list(NAMED_PERIODS)}")
            return RelativeNamedPeriod(period=name)
        if period_type == "specificMonth":
            month = int(raw["month"])
            if not 1 <= month <= 12:
                raise ValueError(f"Month out of range: {month}")
            return SpecificMonth(year=int(raw["year"]), month=month)
        if period_type == "specificYear":
            return SpecificYear(year=int(raw["year"]))
        if period_type == "specificDate":
            value = raw["date"]
            if not isinstance(value, date):
                value = date.fromisoformat(str(value))
            return SpecificDate(date=value)
    except KeyError as e:
        raise ValueError(f"Period of type '{period_type}' is missing key {e}") from e

    raise ValueError(f"Unknown period type '{period_type}'")


# ── Date helpers ───────────────────────────────────────────────────────

def _week_start(day: date) -> date:
    """Sunday of the week containing `day`."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _shift_months(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _month_name(month: int) -> str:
    return calendar.month_name[month]


def _last_completed_weeks(today: date, count: int) -> Tuple[date, date]:
    end = _week_start(today) - timedelta(days=1)
    start = end - timedelta(days=7 * count - 1)
    return start, end


# ── Formatting ─────────────────────────────────────────────────────────

def _format_relative_range(period: RelativeRange, today: date) -> str:
    count = period.count
    if count <= 0:
        return INVALID_RANGE

    if period.unit == "day":
        if count > (today - date.min).days:
            return INVALID_RANGE
        start = today - timedelta(days=count)
        end = today - timedelta(days=1)
        return f"for dates {start.isoformat()} to {end.isoformat()}"

    if period.unit == "week":
        if 7 * count > (_week_start(today) - date.min).days:
            return INVALID_RANGE
        start, end = _last_completed_weeks(today, count)
        label = "week" if count == 1 else "weeks"
        return f"for {label} {start.isoformat()} to {end.isoformat()}"

    if period.unit == "month":
        end_year, end_month = _shift_months(today.year, today.month, -1)
        if end_year < MINYEAR:
            return INVALID_RANGE
        if count == 1:
            return f"for month {_month_name(end_month)}"
        start_year, start_month = _shift_months(end_year, end_month, -(count - 1))
        if start_year < MINYEAR:
            return INVALID_RANGE
        return (
            f"for months {_month_name(start_month)} {start_year} "
            f"to {_month_name(end_month)} {end_year}"
        )

    if period.unit == "year":
        end_year = today.year - 1
        if end_year - count + 1 < MINYEAR:
            return INVALID_RANGE
        if count == 1:
            return f"for year {end_year}"
        return f"for years {end_year - count + 1} to {end_year}"

    logger.warning(f"Unknown range unit '{period.unit}' in historical period")
    return UNKNOWN_PERIOD


def _format_named_period(period: RelativeNamedPeriod, today: date) -> str:
    name = period.period
    if name == "yesterday":
        return f"for date {(today - timedelta(days=1)).isoformat()} (yesterday)"
    if name == "today":
        return f"for date {today.isoformat()} (today)"
    if name == "thisWeek":
        return f"for dates {_week_start(today).isoformat()} to {today.isoformat()}"
    if name == "lastWeek":
        return _format_relative_range(RelativeRange(count=1, unit="week"), today)
    if name == "thisMonth":
        return f"for dates {today.replace(day=1).isoformat()} to {today.isoformat()}"
    if name == "lastMonth":
        return _format_relative_range(RelativeRange(count=1, unit="month"), today)
    if name == "thisYear":
        return f"for dates {date(today.year, 1, 1).isoformat()} to {today.isoformat()}"
    if name == "lastYear":
        return _format_relative_range(RelativeRange(count=1, unit="year"), today)

    logger.warning(f"Unknown named period '{name}' in historical period")
    return UNKNOWN_PERIOD


def _format_specific_date(period: SpecificDate, today: date) -> str:
    text = f"for date {period.date.isoformat()}"
    if period.date == today:
        return f"{text} (today)"
    if period.date == today - timedelta(days=1):
        return f"{text} (yesterday)"
    return text


def format_period(period: Any, today: Optional[date] = None) -> str:
    """
    Renders a historical period as a phrase anchored to `today`.

    Args:
        period: One of the HistoricalPeriod variants
        today: Reference date; defaults to the current UTC date

    Returns:
        The phrase, INVALID_RANGE for a non-positive relative count or a
        range reaching before year 1, or UNKNOWN_PERIOD for anything that
        is not a recognised variant.
    """
    if today is None:
        today = utc_today()

    try:
        return _format_period(period, today)
    except OverflowError:
        logger.warning(f"Historical period {period!r} falls outside the supported calendar")
        return INVALID_RANGE


def _format_period(period: Any, today: date) -> str:
    if isinstance(period, RelativeRange):
        return _format_relative_range(period, today)
    if isinstance(period, RelativeNamedPeriod):
        return _format_named_period(period, today)
    if isinstance(period, SpecificMonth):
        if not 1 <= period.month <= 12:
            logger.warning(f"Month out of range in historical period {period!r}")
            return UNKNOWN_PERIOD
        return f"for month {_month_name(period.month)} {period.year}"
    if isinstance(period, SpecificYear):
        return f"for year {period.year}"
    if isinstance(period, SpecificDate):
        return _format_specific_date(period, today)

    logger.warning(f"Unrecognized historical period {period!r}; using fallback description")
    return UNKNOWN_PERIOD
