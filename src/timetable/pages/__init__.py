"""Extractors for the ETIS timetable pages."""

from src.timetable.pages.index import WeekIndexPage, parse_week_index
from src.timetable.pages.week import WeekPage, extract_week

__all__ = ["WeekPage", "WeekIndexPage", "extract_week", "parse_week_index"]
