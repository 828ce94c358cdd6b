"""TimetableService - the entry point for reading the timetable.

Holds the current snapshot, loads it from the store on first use, and
rebuilds it from ETIS when the staleness rules say so. Refreshes are
serialized: a caller arriving while a build runs waits for it and then finds
the snapshot already fresh.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime

from src.timetable.builder import (
    DEFAULT_MAX_CONCURRENCY,
    INDEX_QUERY,
    WEEK_QUERY,
    build_snapshot,
    local_now,
)
from src.timetable.errors import CorruptStateError, NoSnapshotError
from src.timetable.fetcher import HtmlFetcher
from src.timetable.logging import get_logger
from src.timetable.models import ScheduleSnapshot, Week
from src.timetable.staleness import is_sunday, needs_refresh, resolve_current_week_index
from src.timetable.store import SnapshotStore

log = get_logger(__name__)


class TimetableService:
    """Cached access to the ETIS timetable."""

    def __init__(
        self,
        fetcher: HtmlFetcher,
        store: SnapshotStore,
        *,
        index_query: str = INDEX_QUERY,
        week_query: str = WEEK_QUERY,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self.fetcher = fetcher
        self.store = store
        self.index_query = index_query
        self.week_query = week_query
        self.max_concurrency = max_concurrency
        self.clock = clock

        self._snapshot = ScheduleSnapshot()
        self._loaded = False
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> ScheduleSnapshot:
        return self._snapshot

    async def _load_cached(self) -> None:
        try:
            cached = await asyncio.to_thread(self.store.load)
        except CorruptStateError as e:
            log.warning("snapshot_corrupt", path=str(self.store.path), error=str(e))
            await asyncio.to_thread(self.store.clear)
            cached = None

        if cached is not None:
            self._snapshot = cached
        self._loaded = True

    async def _rebuild(self) -> ScheduleSnapshot:
        snapshot = await build_snapshot(
            self.fetcher,
            index_query=self.index_query,
            week_query=self.week_query,
            max_concurrency=self.max_concurrency,
            clock=self.clock,
        )
        self._snapshot = snapshot
        await asyncio.to_thread(self.store.save, snapshot)
        return snapshot

    async def ensure_fresh(self) -> ScheduleSnapshot:
        """Return a snapshot that is current for this week.

        Loads the stored snapshot on first use and rebuilds it from ETIS when
        it is missing or stale. A failed rebuild leaves the previous snapshot
        in place.

        Raises:
            FetchError: If ETIS cannot be reached during a rebuild.
            ParseError: If a page does not have the expected structure.
        """
        async with self._lock:
            if not self._loaded:
                await self._load_cached()

            has_cached = not self._snapshot.is_empty and await asyncio.to_thread(
                self.store.exists
            )
            if not needs_refresh(
                has_cached, self.clock(), self._snapshot.last_updated_at
            ):
                log.debug(
                    "refresh_skipped",
                    last_updated_at=str(self._snapshot.last_updated_at),
                )
                return self._snapshot

            log.info("refresh_started", has_cached=has_cached)
            return await self._rebuild()

    async def refresh(self) -> ScheduleSnapshot:
        """Rebuild the snapshot from ETIS regardless of its age."""
        async with self._lock:
            if not self._loaded:
                await self._load_cached()
            log.info("refresh_started", forced=True)
            return await self._rebuild()

    def _require_snapshot(self) -> ScheduleSnapshot:
        if self._snapshot.is_empty:
            raise NoSnapshotError("The timetable has not been fetched yet")
        return self._snapshot

    def all_weeks(self) -> list[Week]:
        return list(self._require_snapshot().weeks)

    def current_week_index(self) -> int:
        """Index of the week to show as current, one ahead on Sundays."""
        snapshot = self._require_snapshot()
        return resolve_current_week_index(
            snapshot.current_week_index,
            len(snapshot.weeks),
            is_sunday(self.clock()),
        )

    def current_week(self) -> Week:
        return self._require_snapshot().weeks[self.current_week_index()]

    def last_updated_at(self) -> datetime:
        return self._require_snapshot().last_updated_at

    def force_clear(self) -> None:
        """Drop the persisted snapshot.

        The in-memory snapshot stays readable; the next ensure_fresh()
        rebuilds it because nothing is cached on disk any more.
        """
        self.store.clear()
        log.info("cache_cleared")
