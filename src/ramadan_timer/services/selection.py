"""Active day selection and countdown helpers."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timedelta

from ramadan_timer.domain.errors import RamadanTimerError
from ramadan_timer.domain.models import ActivePeriod, DayRecord, SelectionState
from ramadan_timer.services.cache import DayRecordCache

logger = logging.getLogger(__name__)

BackfillFetch = Callable[[date], Awaitable[DayRecord | None]]


def resolve_active(
    cache: DayRecordCache, now: datetime
) -> tuple[SelectionState, date | None]:
    """
    Pick today's or tomorrow's record.

    Returns the selection and the date that should be backfilled, if any.
    """
    today = now.date()
    tomorrow = today + timedelta(days=1)

    today_record = cache.get(today)
    if today_record is not None and now < today_record.iftar_time:
        return SelectionState(is_next_day=False, active=today_record), None

    tomorrow_record = cache.get(tomorrow)
    if tomorrow_record is not None:
        return SelectionState(is_next_day=True, active=tomorrow_record), None

    # Stale fallback while tomorrow is fetched
    latest = cache.latest()
    if latest is None:
        return SelectionState(is_next_day=False, active=None), tomorrow
    return SelectionState(is_next_day=True, active=latest), tomorrow


class ActivePeriodSelector:
    """Selection with de-duplicated fire-and-forget backfill."""

    def __init__(
        self,
        cache: DayRecordCache,
        backfill: BackfillFetch | None = None,
        on_backfilled: Callable[[DayRecord], None] | None = None,
    ) -> None:
        """
        Initialize selector.

        Args:
            cache: Shared day cache
            backfill: Fetches one missing day; its result is stored in the cache
            on_backfilled: Called after a backfilled record lands in the cache
        """
        self._cache = cache
        self._backfill = backfill
        self._on_backfilled = on_backfilled
        self._in_flight: dict[date, asyncio.Task[None]] = {}

    @property
    def pending(self) -> frozenset[date]:
        """Days with a backfill in flight."""
        return frozenset(self._in_flight)

    def select(self, now: datetime) -> SelectionState:
        """Current selection; may start a backfill for tomorrow."""
        state, missing = resolve_active(self._cache, now)
        if missing is not None:
            self.request_backfill(missing)
        return state

    def request_backfill(self, day: date) -> bool:
        """Start fetching `day` unless it is cached or already in flight."""
        if self._backfill is None:
            return False
        if day in self._cache or day in self._in_flight:
            return False

        logger.info(f"Backfilling times for {day}")
        task = asyncio.get_running_loop().create_task(self._run_backfill(day))
        self._in_flight[day] = task
        return True

    async def _run_backfill(self, day: date) -> None:
        assert self._backfill is not None
        try:
            record = await self._backfill(day)
            if record is not None:
                self._cache.upsert_one(record)
                if self._on_backfilled is not None:
                    self._on_backfilled(record)
        except RamadanTimerError as e:
            logger.warning(f"Backfill for {day} failed: {e}")
        finally:
            self._in_flight.pop(day, None)

    async def wait_pending(self) -> None:
        """Wait for in-flight backfills to settle."""
        tasks = list(self._in_flight.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def cancel_pending(self) -> None:
        """Cancel in-flight backfills."""
        tasks = list(self._in_flight.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()


def active_period_for_display(
    sehri_time: datetime, iftar_time: datetime, now: datetime
) -> ActivePeriod:
    """Which countdown to show for the selected day."""
    if now < sehri_time and now < iftar_time:
        return ActivePeriod.SEHRI if sehri_time < iftar_time else ActivePeriod.IFTAR
    if now > sehri_time and now < iftar_time:
        return ActivePeriod.IFTAR
    # Both passed means the selection already rolled to tomorrow
    return ActivePeriod.SEHRI


def time_remaining(target: datetime, now: datetime) -> timedelta:
    """Time left until target, never negative."""
    remaining = target - now
    return max(remaining, timedelta(0))


def format_countdown(td: timedelta) -> str:
    """HH:MM:SS."""
    total_seconds = int(td.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
