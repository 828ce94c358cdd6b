"""Pydantic models for timetable data.

All data structures use Pydantic v2 for validation, serialization, and type
safety. Models are frozen: a snapshot is only ever replaced as a whole.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, model_validator


class Period(BaseModel):
    """One class slot ("пара") of a day.

    Empty slots are kept with exists=False so days stay comparable by
    position; they carry only the ordinal and the start time.
    """

    model_config = ConfigDict(frozen=True)

    exists: bool
    ordinal: str  # "1 пара", first six characters of the leading cell
    start_time: str  # "08:00" from the <font> of the leading cell
    title: str | None = None
    teacher: str | None = None
    room: str | None = None

    @model_validator(mode="after")
    def _empty_slot_has_no_content(self) -> "Period":
        if not self.exists and any((self.title, self.teacher, self.room)):
            raise ValueError("an absent period cannot carry title, teacher or room")
        return self

    @classmethod
    def empty(cls, ordinal: str, start_time: str) -> "Period":
        return cls(exists=False, ordinal=ordinal, start_time=start_time)


class Day(BaseModel):
    """A day block of the week view."""

    model_config = ConfigDict(frozen=True)

    name: str
    has_periods: bool  # True iff the page rendered a table for this day
    periods: list[Period] = []

    @model_validator(mode="after")
    def _periods_need_table(self) -> "Day":
        if not self.has_periods and self.periods:
            raise ValueError("a day without a table cannot have periods")
        return self


class Week(BaseModel):
    """One published week of the timetable."""

    model_config = ConfigDict(frozen=True)

    number: int  # as published, not necessarily 1-based
    label: str | None = None  # caption, usually a date range
    days: list[Day] = []


class WeekIndexEntry(BaseModel):
    """An entry of the week index list.

    The server renders its own current week as plain text and every other
    week as a link.
    """

    model_config = ConfigDict(frozen=True)

    number: int
    is_current: bool = False


class ScheduleSnapshot(BaseModel):
    """The complete result of the last successful fetch."""

    model_config = ConfigDict(frozen=True)

    weeks: list[Week] = []
    current_week_index: int = 0
    last_updated_at: datetime | None = None

    @model_validator(mode="after")
    def _index_points_at_a_week(self) -> "ScheduleSnapshot":
        if self.weeks and not 0 <= self.current_week_index < len(self.weeks):
            raise ValueError(
                f"current_week_index {self.current_week_index} out of range "
                f"for {len(self.weeks)} weeks"
            )
        return self

    @property
    def is_empty(self) -> bool:
        return not self.weeks
