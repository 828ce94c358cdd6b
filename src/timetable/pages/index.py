"""WeekIndexPage - reads the list of published weeks.

Every ETIS timetable page carries the list at
``html/body/div[2]/div/div[2]/div[2]/ul``. Each ``li`` holds a week number;
the week the server considers current is rendered as plain text, every other
week as ``<a href="stu.timetable?p_cons=n&p_week=N">N</a>``.
"""

from src.timetable.errors import ParseError
from src.timetable.logging import get_logger
from src.timetable.models import WeekIndexEntry
from src.timetable.pages.locator import children, locate, parse_html, text_of

log = get_logger(__name__)


class WeekIndexPage:
    """The week index list of an ETIS timetable page."""

    WEEK_LIST = "html/body/div[2]/div/div[2]/div[2]/ul"

    def __init__(self, html: str) -> None:
        self.document = parse_html(html)

    def entries(self) -> list[WeekIndexEntry]:
        """Return the listed weeks in page order.

        Raises:
            ParseError: If the list is missing, empty, or holds a
                non-numeric entry.
        """
        week_list = locate(self.document, self.WEEK_LIST)
        if week_list is None:
            raise ParseError("Week index list not found", path=self.WEEK_LIST)

        entries: list[WeekIndexEntry] = []
        for position, item in enumerate(children(week_list, "li")):
            link = locate(item, "a")
            raw = text_of(link if link is not None else item)
            try:
                number = int(raw)
            except ValueError:
                raise ParseError(
                    f"Week index entry {position} is not a number: {raw!r}",
                    path=self.WEEK_LIST,
                ) from None
            entries.append(WeekIndexEntry(number=number, is_current=link is None))

        if not entries:
            raise ParseError("Week index list is empty", path=self.WEEK_LIST)

        log.debug(
            "week_index_parsed",
            weeks=[e.number for e in entries],
            current=[e.number for e in entries if e.is_current],
        )
        return entries


def parse_week_index(html: str) -> list[WeekIndexEntry]:
    return WeekIndexPage(html).entries()
