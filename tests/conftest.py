"""Fabricated ETIS pages and a scripted fetcher shared by the tests."""

import asyncio

import pytest

INDEX_QUERY = "stu.timetable"


def week_query(number):
    return f"stu.timetable?p_cons=n&p_week={number}"


def period_row(ordinal, start_time, info=None):
    """One <tr>; ``info`` is (teacher, title, room) or None for an empty slot."""
    if info is None:
        second = "<td></td>"
    else:
        teacher, title, room = info
        second = (
            "<td><div>"
            f'<div><span><a href="stu.teacher">{teacher}</a></span><span>\n{title}\n</span></div>'
            f"<div><span>{room}</span></div>"
            "</div></td>"
        )
    return f"<tr><td>{ordinal}<br/><font>{start_time}</font></td>{second}</tr>"


def day_block(name, rows=None):
    table = "" if rows is None else f"<table>{''.join(rows)}</table>"
    return f"<div><h3>{name}</h3>{table}</div>"


def etis_page(weeks, caption="", days=None):
    """A timetable page in the ETIS layout.

    ``weeks`` is a list of (number, is_current); ``days`` is a list of day
    blocks, or None to leave out the timetable container.
    """
    items = "".join(
        f"<li>{number}</li>" if current
        else f'<li><a href="stu.timetable?p_cons=n&amp;p_week={number}">{number}</a></li>'
        for number, current in weeks
    )
    container = "" if days is None else f"<div>{''.join(days)}</div>"
    return (
        "<html><body>"
        "<div>ETIS</div>"
        "<div><div>"
        "<div>sidebar</div>"
        "<div>"
        "<div>menu</div>"
        "<div>"
        f"<ul>{items}</ul>"
        "<div>navigation</div>"
        f"<div><span>{caption}\n</span></div>"
        "</div>"
        f"{container}"
        "</div>"
        "</div></div>"
        "</body></html>"
    )


LISTING = [(12, False), (13, True), (14, False)]


@pytest.fixture
def listing():
    return list(LISTING)


@pytest.fixture
def site_pages():
    """Index page plus three week views: 13 is the server's current week."""
    return {
        INDEX_QUERY: etis_page(LISTING, "c 14.10.2024 по 20.10.2024", []),
        week_query(12): etis_page(
            LISTING,
            "c 07.10.2024 по 13.10.2024",
            [
                day_block(
                    "Понедельник",
                    [
                        period_row("1 пара", "08:00", ("Иванов И.И.", "Математический анализ", "ауд. 301/8")),
                        period_row("2 пара", "09:45"),
                    ],
                ),
                day_block("Вторник"),
            ],
        ),
        week_query(13): etis_page(
            LISTING,
            "c 14.10.2024 по 20.10.2024",
            [
                day_block(
                    "Понедельник",
                    [period_row("1 пара", "08:00", ("Петров П.П.", "Физика", "ауд. 105/2"))],
                ),
            ],
        ),
        week_query(14): etis_page(
            LISTING, "c 21.10.2024 по 27.10.2024", [day_block("Понедельник")]
        ),
    }


class FakeFetcher:
    """Serves pages from a dict, optionally with per-query delays or errors."""

    def __init__(self, pages, delays=None, failures=None):
        self.pages = pages
        self.delays = delays or {}
        self.failures = failures or {}
        self.calls = []
        self.cancelled = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, query):
        self.calls.append(query)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(query, 0))
            if query in self.failures:
                raise self.failures[query]
            return self.pages[query]
        except asyncio.CancelledError:
            self.cancelled.append(query)
            raise
        finally:
            self.in_flight -= 1


@pytest.fixture
def fetcher(site_pages):
    return FakeFetcher(site_pages)
