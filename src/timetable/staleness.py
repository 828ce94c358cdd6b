"""Date arithmetic deciding when the cached timetable is out of date.

A snapshot is good for the calendar week (Monday to Sunday) it was fetched
in. On Sundays the cached snapshot is never considered stale, and the
"current" week is shifted one ahead so the coming week is shown the day
before classes resume.
"""

from datetime import date, datetime, timedelta

SUNDAY = 6


def _as_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def week_start(value: date) -> date:
    """Monday of the ISO week containing ``value``."""
    day = _as_date(value)
    return day - timedelta(days=day.weekday())


def same_week(first: date, second: date) -> bool:
    return week_start(first) == week_start(second)


def is_sunday(value: date) -> bool:
    return value.weekday() == SUNDAY


def needs_refresh(
    has_cached_snapshot: bool, now: datetime, last_updated_at: datetime | None
) -> bool:
    """Whether the timetable has to be fetched again.

    Without a cached snapshot the answer is always yes. Otherwise a Sunday
    never forces a refresh, and any other day refreshes when the snapshot was
    taken in a different calendar week.
    """
    if not has_cached_snapshot:
        return True
    if is_sunday(now):
        # Keeps last week's snapshot through Sunday even when it is older
        # than a week; see DESIGN.md.
        return False
    if last_updated_at is None:
        return True
    return not same_week(now, last_updated_at)


def resolve_current_week_index(base_index: int, week_count: int, is_sunday: bool) -> int:
    """Index of the week to present as current.

    On Sundays this is the week after ``base_index`` when one exists.
    """
    if is_sunday and base_index + 1 < week_count:
        return base_index + 1
    return base_index
