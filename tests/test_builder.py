import asyncio
from datetime import datetime, timezone

import pytest

from conftest import FakeFetcher, etis_page, week_query
from src.timetable.builder import build_snapshot, resolve_index_offset
from src.timetable.errors import FetchError, ParseError
from src.timetable.models import WeekIndexEntry

FETCHED_AT = datetime(2024, 10, 16, 12, 30, tzinfo=timezone.utc)


def build(fetcher, **kwargs):
    return asyncio.run(build_snapshot(fetcher, clock=lambda: FETCHED_AT, **kwargs))


def test_builds_weeks_in_listing_order(fetcher):
    snapshot = build(fetcher)

    assert [w.number for w in snapshot.weeks] == [12, 13, 14]
    assert snapshot.current_week_index == 1
    assert snapshot.last_updated_at == FETCHED_AT
    assert fetcher.calls[0] == "stu.timetable"
    assert sorted(fetcher.calls[1:]) == sorted(week_query(n) for n in (12, 13, 14))


def test_fills_days_and_periods(fetcher):
    week = build(fetcher).weeks[0]

    monday, tuesday = week.days
    assert tuesday.has_periods is False and tuesday.periods == []
    populated, absent = monday.periods
    assert (populated.title, populated.teacher, populated.room) == (
        "Математический анализ",
        "Иванов И.И.",
        "ауд. 301/8",
    )
    assert absent.exists is False
    assert absent.ordinal == "2 пара"


def test_order_does_not_depend_on_completion(site_pages):
    fetcher = FakeFetcher(
        site_pages, delays={week_query(12): 0.05, week_query(13): 0.02}
    )
    snapshot = build(fetcher)
    assert [w.number for w in snapshot.weeks] == [12, 13, 14]


def test_concurrency_is_bounded(site_pages):
    fetcher = FakeFetcher(site_pages, delays={week_query(n): 0.01 for n in (12, 13, 14)})
    build(fetcher, max_concurrency=2)
    assert fetcher.max_in_flight == 2


def test_fetch_failure_aborts_and_cancels_the_rest(site_pages):
    fetcher = FakeFetcher(
        site_pages,
        delays={week_query(12): 0.5, week_query(14): 0.5},
        failures={week_query(13): FetchError("HTTP 502")},
    )
    with pytest.raises(FetchError):
        build(fetcher)
    assert sorted(fetcher.cancelled) == [week_query(12), week_query(14)]


def test_parse_failure_aborts(site_pages):
    site_pages[week_query(14)] = etis_page(
        [(12, False), (13, True), (14, False)], "caption", ["<div><table></table></div>"]
    )
    with pytest.raises(ParseError) as excinfo:
        build(FakeFetcher(site_pages))
    assert excinfo.value.week_number == 14


def test_missing_index_list_aborts():
    fetcher = FakeFetcher({"stu.timetable": "<html><body></body></html>"})
    with pytest.raises(ParseError):
        build(fetcher)
    assert fetcher.calls == ["stu.timetable"]


def test_custom_queries(site_pages):
    pages = {
        "index": site_pages["stu.timetable"],
        **{f"week/{n}": site_pages[week_query(n)] for n in (12, 13, 14)},
    }
    snapshot = build(FakeFetcher(pages), index_query="index", week_query="week/{week}")
    assert len(snapshot.weeks) == 3


def test_offset_from_first_listed_week():
    entries = [WeekIndexEntry(number=n, is_current=n == 7) for n in (5, 6, 7, 8)]
    assert resolve_index_offset(entries) == 2


def test_gap_in_listing_falls_back_to_position():
    entries = [
        WeekIndexEntry(number=1),
        WeekIndexEntry(number=20),
        WeekIndexEntry(number=21, is_current=True),
    ]
    assert resolve_index_offset(entries) == 2


def test_no_current_entry_defaults_to_first():
    entries = [WeekIndexEntry(number=n) for n in (3, 4)]
    assert resolve_index_offset(entries) == 0


def test_gap_with_offset_in_range_keeps_offset():
    entries = [
        WeekIndexEntry(number=1),
        WeekIndexEntry(number=3, is_current=True),
        WeekIndexEntry(number=4),
        WeekIndexEntry(number=5),
    ]
    assert resolve_index_offset(entries) == 2
