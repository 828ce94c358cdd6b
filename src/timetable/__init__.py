"""PSU ETIS timetable scraper.

Fetches the weekly class timetable from the ETIS student portal, extracts it
into Week/Day/Period records and caches the result until the calendar week
changes.
"""

from src.timetable.builder import build_snapshot
from src.timetable.errors import (
    AuthenticationError,
    CorruptStateError,
    FetchError,
    NoSnapshotError,
    ParseError,
    TimetableError,
)
from src.timetable.fetcher import HtmlFetcher, PlaywrightFetcher
from src.timetable.models import Day, Period, ScheduleSnapshot, Week
from src.timetable.pages.week import extract_week
from src.timetable.service import TimetableService
from src.timetable.store import SnapshotStore

__all__ = [
    "TimetableService",
    "SnapshotStore",
    "HtmlFetcher",
    "PlaywrightFetcher",
    "build_snapshot",
    "extract_week",
    "Period",
    "Day",
    "Week",
    "ScheduleSnapshot",
    "TimetableError",
    "FetchError",
    "AuthenticationError",
    "ParseError",
    "CorruptStateError",
    "NoSnapshotError",
]
