"""Show the ETIS class timetable as a table or JSON.

Standalone CLI script. Reads the cached snapshot, refreshes it from ETIS when
the calendar week has changed, and prints the current week.

Run with: python scripts/show_timetable.py
Debug:    python scripts/show_timetable.py --headed
JSON:     python scripts/show_timetable.py --json
All:      python scripts/show_timetable.py --all --json
Refresh:  python scripts/show_timetable.py --refresh
Clear:    python scripts/show_timetable.py --clear

Exit codes:
  0 = success (timetable on stdout)
  1 = error (message on stderr)
"""

import argparse
import asyncio
import json
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.timetable.config import get_config  # noqa: E402
from src.timetable.errors import TimetableError  # noqa: E402
from src.timetable.fetcher import PlaywrightFetcher  # noqa: E402
from src.timetable.logging import get_logger, setup_logging  # noqa: E402
from src.timetable.models import Week  # noqa: E402
from src.timetable.service import TimetableService  # noqa: E402
from src.timetable.store import SnapshotStore  # noqa: E402

log = get_logger("show_timetable")


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Show the ETIS class timetable as a table or JSON.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Launch browser in headed mode (visible window).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON instead of a table.",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Output every published week, not only the current one.",
    )

    cache_group = parser.add_mutually_exclusive_group()
    cache_group.add_argument(
        "--refresh",
        action="store_true",
        help="Fetch the timetable again even if the cache is current.",
    )
    cache_group.add_argument(
        "--clear",
        action="store_true",
        help="Delete the cached timetable and exit.",
    )
    return parser.parse_args()


def _format_week(week: Week) -> str:
    """Format one week as a human-readable table.

    Columns: Day | # | Time | Subject | Teacher | Room
    """
    headers = ["Day", "#", "Time", "Subject", "Teacher", "Room"]

    rows = []
    for day in week.days:
        if not day.has_periods:
            rows.append([day.name, "", "", "(no classes)", "", ""])
            continue
        for period in day.periods:
            if not period.exists:
                continue
            rows.append(
                [
                    day.name,
                    period.ordinal,
                    period.start_time,
                    period.title or "-",
                    period.teacher or "-",
                    period.room or "-",
                ]
            )

    title = f"Week {week.number}" + (f": {week.label}" if week.label else "")
    if not rows:
        return f"{title}\n(no classes scheduled)"

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)
    row_lines = [
        " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)) for row in rows
    ]

    return "\n".join([title, header_line, separator, *row_lines])


async def main(args: argparse.Namespace) -> None:
    config = get_config()
    if args.headed:
        config.headless = False

    store = SnapshotStore(config.snapshot_path)

    async with PlaywrightFetcher(config) as fetcher:
        service = TimetableService(
            fetcher,
            store,
            index_query=config.index_query,
            week_query=config.week_query,
            max_concurrency=config.max_concurrent_fetches,
        )
        if args.clear:
            # The browser only starts on a fetch, so this never touches ETIS
            service.force_clear()
            return
        if args.refresh:
            await service.refresh()
        else:
            await service.ensure_fresh()

    weeks = service.all_weeks() if args.all else [service.current_week()]
    log.info(
        "timetable_ready",
        weeks=len(weeks),
        last_updated_at=service.last_updated_at().isoformat(),
    )

    if args.json:
        output = [week.model_dump(mode="json") for week in weeks]
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        print("\n\n".join(_format_week(week) for week in weeks))


if __name__ == "__main__":
    args = _parse_args()
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    try:
        asyncio.run(main(args))
    except TimetableError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
