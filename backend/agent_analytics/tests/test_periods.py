from datetime import date

import pytest

from agent_analytics.periods import (
    INVALID_RANGE,
    UNKNOWN_PERIOD,
    RelativeNamedPeriod,
    RelativeRange,
    SpecificDate,
    SpecificMonth,
    SpecificYear,
    format_period,
    parse_period,
)

TODAY = date(2024, 3, 15)  # a Friday


def test_last_month_uses_single_month_phrase():
    assert format_period(RelativeRange(count=1, unit="month"), TODAY) == "for month February"


def test_last_three_days_excludes_today():
    assert format_period(RelativeRange(count=3, unit="day"), TODAY) == "for dates 2024-03-12 to 2024-03-14"


def test_single_day_range_crosses_leap_day():
    assert format_period(RelativeRange(count=1, unit="day"), date(2024, 3, 1)) == "for dates 2024-02-29 to 2024-02-29"


def test_last_week_runs_sunday_to_saturday():
    assert format_period(RelativeRange(count=1, unit="week"), TODAY) == "for week 2024-03-03 to 2024-03-09"


def test_multiple_weeks_align_start_to_sunday():
    assert format_period(RelativeRange(count=2, unit="week"), TODAY) == "for weeks 2024-02-25 to 2024-03-09"


def test_week_on_a_sunday_ends_yesterday():
    assert format_period(RelativeRange(count=1, unit="week"), date(2024, 3, 17)) == "for week 2024-03-10 to 2024-03-16"


def test_multiple_months_cross_year_boundary():
    assert (
        format_period(RelativeRange(count=3, unit="month"), TODAY)
        == "for months December 2023 to February 2024"
    )


def test_last_month_in_january_is_december():
    assert format_period(RelativeRange(count=1, unit="month"), date(2024, 1, 10)) == "for month December"


def test_years():
    assert format_period(RelativeRange(count=1, unit="year"), TODAY) == "for year 2023"
    assert format_period(RelativeRange(count=3, unit="year"), TODAY) == "for years 2021 to 2023"


@pytest.mark.parametrize("unit", ["day", "week", "month", "year"])
@pytest.mark.parametrize("count", [0, -1, -12])
def test_non_positive_count_is_invalid_range(unit, count):
    assert format_period(RelativeRange(count=count, unit=unit), TODAY) == INVALID_RANGE


@pytest.mark.parametrize(
    "name, expected",
    [
        ("yesterday", "for date 2024-03-14 (yesterday)"),
        ("today", "for date 2024-03-15 (today)"),
        ("thisWeek", "for dates 2024-03-10 to 2024-03-15"),
        ("lastWeek", "for week 2024-03-03 to 2024-03-09"),
        ("thisMonth", "for dates 2024-03-01 to 2024-03-15"),
        ("lastMonth", "for month February"),
        ("thisYear", "for dates 2024-01-01 to 2024-03-15"),
        ("lastYear", "for year 2023"),
    ],
)
def test_named_periods(name, expected):
    assert format_period(RelativeNamedPeriod(period=name), TODAY) == expected


def test_specific_month_and_year():
    assert format_period(SpecificMonth(year=2023, month=7), TODAY) == "for month July 2023"
    assert format_period(SpecificYear(year=2022), TODAY) == "for year 2022"


def test_specific_date_annotations():
    assert format_period(SpecificDate(date=TODAY), TODAY) == "for date 2024-03-15 (today)"
    assert format_period(SpecificDate(date=date(2024, 3, 14)), TODAY) == "for date 2024-03-14 (yesterday)"
    assert format_period(SpecificDate(date=date(2024, 1, 2)), TODAY) == "for date 2024-01-02"


def test_unrecognized_values_fall_back_without_raising(caplog):
    assert format_period({"type": "relative"}, TODAY) == UNKNOWN_PERIOD
    assert format_period(RelativeRange(count=2, unit="fortnight"), TODAY) == UNKNOWN_PERIOD
    assert format_period(RelativeNamedPeriod(period="nextWeek"), TODAY) == UNKNOWN_PERIOD
    assert format_period(SpecificMonth(year=2024, month=13), TODAY) == UNKNOWN_PERIOD
    assert "Unrecognized historical period" in caplog.text


def test_defaults_to_current_utc_date():
    assert format_period(RelativeNamedPeriod(period="today")).endswith("(today)")


def test_parse_period_variants():
    assert parse_period({"type": "relative", "count": 3, "unit": "day"}) == RelativeRange(3, "day")
    assert parse_period({"type": "relativeSpecific", "period": "lastMonth"}) == RelativeNamedPeriod("lastMonth")
    assert parse_period({"type": "specificMonth", "year": 2024, "month": "2"}) == SpecificMonth(2024, 2)
    assert parse_period({"type": "specificYear", "year": 2023}) == SpecificYear(2023)
    assert parse_period({"type": "specificDate", "date": "2024-03-15"}) == SpecificDate(TODAY)
    assert parse_period({"type": "specificDate", "date": TODAY}) == SpecificDate(TODAY)


@pytest.mark.parametrize(
    "raw",
    [
        {"type": "sometime"},
        {"type": "relative", "count": 3},
        {"type": "relative", "count": 3, "unit": "decade"},
        {"type": "relativeSpecific", "period": "nextYear"},
        {"type": "specificMonth", "year": 2024, "month": 0},
        {"type": "specificDate", "date": "15/03/2024"},
        "lastMonth",
    ],
)
def test_parse_period_rejects_bad_config(raw):
    with pytest.raises(ValueError):
        parse_period(raw)


@pytest.mark.parametrize(
    "count,unit",
    [(10**6, "day"), (10**9, "day"), (10**6, "week"), (30000, "month"), (2024, "year"), (5000, "year")],
)
def test_ranges_before_year_one_are_invalid(count, unit):
    assert format_period(RelativeRange(count, unit), TODAY) == INVALID_RANGE


def test_longest_representable_ranges_still_format():
    assert format_period(RelativeRange(2023, "year"), TODAY) == "for years 1 to 2023"
    assert format_period(RelativeRange((TODAY - date.min).days, "day"), TODAY).startswith("for dates 0001-01-01 to ")


def test_named_periods_at_the_calendar_edge_do_not_raise():
    assert format_period(RelativeNamedPeriod(period="yesterday"), date.min) == INVALID_RANGE
    assert format_period(RelativeNamedPeriod(period="lastMonth"), date(1, 1, 20)) == INVALID_RANGE


@pytest.mark.parametrize("raw", [{"type": "relative", "count": 10**6, "unit": "day"}, {"type": "relative", "count": 101, "unit": "year"}])
def test_parse_period_rejects_oversized_ranges(raw):
    with pytest.raises(ValueError, match="exceeds the maximum"):
        parse_period(raw)
