"""WeekPage - extracts one week of the timetable from an ETIS week view.

The week view is fetched with ``stu.timetable?p_cons=n&p_week=<n>``.

DOM structure (positions, no usable ids or classes):
  html/body/div[2]/div/div[2]
    div[2]/ul             -> week index list (see pages/index.py)
    div[2]/div[2]/span    -> week caption ("c 14.10.2024 по 20.10.2024")
    div[3]                -> timetable container
      div                 -> one block per day
        h3                -> day name
        table             -> absent when the day has no classes
          tr              -> one row per period
            td[1]         -> "1 пара" + <font>08:00</font>
            td[2]         -> empty, or div with the class info:
              div[1]/span[1]/a[1] -> teacher
              div[1]/span[2]      -> subject title
              div[2]/span         -> room
"""

from bs4 import Tag

from src.timetable.errors import ParseError
from src.timetable.logging import get_logger
from src.timetable.models import Day, Period, Week
from src.timetable.pages.locator import children, locate, parse_html, text_of

log = get_logger(__name__)

ORDINAL_LENGTH = 6


class WeekPage:
    """Week view of the ETIS timetable.

    Parsing happens once in the constructor; ``extract`` is pure and can be
    called repeatedly.
    """

    # Positions in the ETIS week view
    CAPTION = "html/body/div[2]/div/div[2]/div[2]/div[2]/span"
    TIMETABLE = "html/body/div[2]/div/div[2]/div[3]"
    DAY_HEADING = "h3"
    DAY_TABLE = "table"
    TIME_CELL = "td[1]/font"
    LEAD_CELL = "td[1]"
    INFO_BLOCK = "td[2]/div"
    TITLE = "div[1]/span[2]"
    TEACHER = "div[1]/span[1]/a[1]"
    ROOM = "div[2]/span"

    def __init__(self, html: str) -> None:
        self.document = parse_html(html)

    def extract(self, week_number: int) -> Week:
        """Extract the week shown on this page.

        Args:
            week_number: Number the page was requested with.

        Returns:
            Week with days and periods in document order.

        Raises:
            ParseError: If the caption, a day heading, a time cell or a part
                of a period's info block is missing.
        """
        caption = locate(self.document, self.CAPTION)
        if caption is None:
            raise ParseError(
                "Week caption not found", week_number=week_number, path=self.CAPTION
            )
        label = text_of(caption) or None

        container = locate(self.document, self.TIMETABLE)
        if container is None:
            log.warning("timetable_container_missing", week=week_number)
            return Week(number=week_number, label=label)

        days = [
            self._extract_day(block, week_number, day_index)
            for day_index, block in enumerate(children(container, "div"))
        ]

        log.debug("week_extracted", week=week_number, days=len(days))
        return Week(number=week_number, label=label, days=days)

    def _extract_day(self, block: Tag, week_number: int, day_index: int) -> Day:
        heading = locate(block, self.DAY_HEADING)
        if heading is None:
            raise ParseError(
                "Day heading not found",
                week_number=week_number,
                day_index=day_index,
                path=self.DAY_HEADING,
            )

        table = locate(block, self.DAY_TABLE)
        if table is None:
            return Day(name=text_of(heading), has_periods=False)

        periods = [
            self._extract_period(row, week_number, day_index, row_index)
            for row_index, row in enumerate(_rows(table))
        ]
        return Day(name=text_of(heading), has_periods=True, periods=periods)

    def _extract_period(
        self, row: Tag, week_number: int, day_index: int, row_index: int
    ) -> Period:
        def require(node: Tag, path: str) -> Tag:
            found = locate(node, path)
            if found is None:
                raise ParseError(
                    "Period node not found",
                    week_number=week_number,
                    day_index=day_index,
                    row_index=row_index,
                    path=path,
                )
            return found

        start_time = text_of(require(row, self.TIME_CELL))
        ordinal = text_of(require(row, self.LEAD_CELL))[:ORDINAL_LENGTH]

        info = locate(row, self.INFO_BLOCK)
        if info is None:
            return Period.empty(ordinal, start_time)

        return Period(
            exists=True,
            ordinal=ordinal,
            start_time=start_time,
            title=text_of(require(info, self.TITLE)),
            teacher=text_of(require(info, self.TEACHER)),
            room=text_of(require(info, self.ROOM)),
        )


def _rows(table: Tag) -> list[Tag]:
    # Saved pages sometimes wrap the rows in <tbody>
    rows = children(table, "tr")
    for body in children(table, "tbody"):
        rows.extend(children(body, "tr"))
    return rows


def extract_week(html: str, week_number: int) -> Week:
    """Parse a week view document into a Week."""
    return WeekPage(html).extract(week_number)
