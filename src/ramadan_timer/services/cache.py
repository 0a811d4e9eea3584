"""Session-scoped multi-day cache of fetched times."""

import logging
from collections.abc import Callable, Iterable, Iterator
from datetime import date, datetime, timedelta

from ramadan_timer.domain.models import DayRecord

logger = logging.getLogger(__name__)


def _day_key(day: date | datetime) -> date:
    return day.date() if isinstance(day, datetime) else day


class DayRecordCache:
    """At most one DayRecord per calendar date."""

    def __init__(self, records: Iterable[DayRecord] = ()) -> None:
        self._records: dict[date, DayRecord] = {}
        for record in records:
            self.upsert_one(record)

    def upsert_one(self, record: DayRecord) -> None:
        """Insert, replacing any record for the same date."""
        self._records[_day_key(record.date)] = record

    def upsert_range(
        self,
        records: Iterable[DayRecord],
        window_start: date | datetime,
        window_days: int,
    ) -> None:
        """
        Replace the window [window_start, window_start + window_days).

        Everything cached inside the window is dropped before the new records
        go in, so fewer records than days shrinks the window. Entries outside
        the window are left alone.
        """
        start = _day_key(window_start)
        end = start + timedelta(days=window_days)

        evicted = [day for day in self._records if start <= day < end]
        for day in evicted:
            del self._records[day]

        inserted = 0
        for record in records:
            self.upsert_one(record)
            inserted += 1

        logger.debug(
            f"Cache window {start}..{end - timedelta(days=1)}: "
            f"{len(evicted)} evicted, {inserted} inserted"
        )

    def get(self, day: date | datetime) -> DayRecord | None:
        return self._records.get(_day_key(day))

    def all(self) -> list[DayRecord]:
        """Records sorted ascending by date."""
        return [self._records[day] for day in sorted(self._records)]

    def latest(self) -> DayRecord | None:
        if not self._records:
            return None
        return self._records[max(self._records)]

    def discard_where(self, predicate: Callable[[DayRecord], bool]) -> int:
        """Drop every record matching `predicate`; return how many went."""
        dropped = [day for day, record in self._records.items() if predicate(record)]
        for day in dropped:
            del self._records[day]
        return len(dropped)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, day: object) -> bool:
        if not isinstance(day, date):
            return False
        return _day_key(day) in self._records

    def __iter__(self) -> Iterator[DayRecord]:
        return iter(self.all())
