"""Assembles a full ScheduleSnapshot from the ETIS timetable pages.

The index page lists the published weeks; each week is then fetched and
extracted on its own. Week fetches run concurrently under a semaphore and
are placed by their position in the index list, so the result order never
depends on which response arrives first.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime

from src.timetable.fetcher import HtmlFetcher
from src.timetable.logging import get_logger
from src.timetable.models import ScheduleSnapshot, Week, WeekIndexEntry
from src.timetable.pages.index import parse_week_index
from src.timetable.pages.week import extract_week

log = get_logger(__name__)

INDEX_QUERY = "stu.timetable"
WEEK_QUERY = "stu.timetable?p_cons=n&p_week={week}"
DEFAULT_MAX_CONCURRENCY = 4


def local_now() -> datetime:
    """Current local time, timezone-aware."""
    return datetime.now().astimezone()


def resolve_index_offset(entries: list[WeekIndexEntry]) -> int:
    """Index of the server's current week within ``entries``.

    The offset is measured from the first listed week number. Listings are
    expected to be contiguous; when a gap pushes the offset past the listed
    weeks, the entry's position is used instead.
    """
    start_week_number = entries[0].number
    for position, entry in enumerate(entries):
        if not entry.is_current:
            continue
        offset = entry.number - start_week_number
        if not 0 <= offset < len(entries):
            log.warning(
                "week_index_out_of_range",
                week=entry.number,
                start_week=start_week_number,
                offset=offset,
                position=position,
            )
            return position
        return offset

    log.warning("current_week_not_flagged", weeks=[e.number for e in entries])
    return 0


async def build_snapshot(
    fetcher: HtmlFetcher,
    *,
    index_query: str = INDEX_QUERY,
    week_query: str = WEEK_QUERY,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    clock: Callable[[], datetime] = local_now,
) -> ScheduleSnapshot:
    """Fetch and extract every published week.

    Args:
        fetcher: Transport returning page HTML for a query.
        index_query: Query of the page carrying the week index list.
        week_query: Query template for one week, ``{week}`` is the number.
        max_concurrency: Maximum number of week pages in flight.
        clock: Source of the ``last_updated_at`` timestamp.

    Returns:
        Snapshot with weeks in index-list order.

    Raises:
        FetchError: If any page cannot be fetched.
        ParseError: If the index list or any week page is malformed.
    """
    log.info("snapshot_build_started", index_query=index_query)

    entries = parse_week_index(await fetcher.fetch(index_query))
    current_week_index = resolve_index_offset(entries)

    semaphore = asyncio.Semaphore(max_concurrency)

    async def load_week(number: int) -> Week:
        async with semaphore:
            html = await fetcher.fetch(week_query.format(week=number))
        return extract_week(html, number)

    tasks = [asyncio.ensure_future(load_week(entry.number)) for entry in entries]
    try:
        weeks = await asyncio.gather(*tasks)
    except BaseException:
        # One failed week (or a cancelled caller) voids the whole snapshot
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    snapshot = ScheduleSnapshot(
        weeks=list(weeks),
        current_week_index=current_week_index,
        last_updated_at=clock(),
    )
    log.info(
        "snapshot_built",
        weeks=len(snapshot.weeks),
        first_week=snapshot.weeks[0].number,
        current_week=snapshot.weeks[current_week_index].number,
    )
    return snapshot
