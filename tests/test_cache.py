"""Tests for the day cache."""

from datetime import date, datetime, timedelta

from conftest import RIYADH, make_record
from ramadan_timer.services.cache import DayRecordCache

D = date(2024, 3, 11)


def _days(start: date, count: int) -> list[date]:
    return [start + timedelta(days=i) for i in range(count)]


class TestDayRecordCache:
    """DayRecordCache tests."""

    def test_upsert_replaces_same_date(self) -> None:
        cache = DayRecordCache()
        cache.upsert_one(make_record(D, iftar="18:30"))
        cache.upsert_one(make_record(D, iftar="18:31"))

        assert len(cache) == 1
        assert cache.get(D).iftar_time.minute == 31

    def test_all_sorted(self) -> None:
        cache = DayRecordCache(make_record(d) for d in reversed(_days(D, 3)))
        assert [r.date for r in cache.all()] == _days(D, 3)
        assert [r.date for r in cache] == _days(D, 3)

    def test_latest(self) -> None:
        cache = DayRecordCache()
        assert cache.latest() is None
        cache.upsert_one(make_record(D + timedelta(days=2)))
        cache.upsert_one(make_record(D))
        assert cache.latest().date == D + timedelta(days=2)

    def test_get_by_datetime(self) -> None:
        cache = DayRecordCache([make_record(D)])
        assert cache.get(datetime(2024, 3, 11, 23, 59, tzinfo=RIYADH)) is not None
        assert datetime(2024, 3, 11, 1, 0) in cache
        assert "2024-03-11" not in cache

    def test_upsert_range_replaces_window(self) -> None:
        cache = DayRecordCache(make_record(d, iftar="18:00") for d in _days(D, 4))
        cache.upsert_range([make_record(d, iftar="18:45") for d in _days(D, 4)], D, 4)

        assert len(cache) == 4
        assert all(r.iftar_time.minute == 45 for r in cache)

    def test_upsert_range_keeps_outside_entries(self) -> None:
        before = D - timedelta(days=5)
        after = D + timedelta(days=10)
        cache = DayRecordCache([make_record(before), make_record(after)])

        cache.upsert_range([make_record(d) for d in _days(D, 4)], D, 4)

        assert before in cache
        assert after in cache
        assert len(cache) == 6

    def test_upsert_range_drops_missing_days_in_window(self) -> None:
        """Test fewer records than days shrinks the window."""
        cache = DayRecordCache(make_record(d) for d in _days(D, 4))
        cache.upsert_range([make_record(D), make_record(D + timedelta(days=1))], D, 4)

        assert [r.date for r in cache] == _days(D, 2)

    def test_clear(self) -> None:
        cache = DayRecordCache([make_record(D)])
        cache.clear()
        assert len(cache) == 0
        assert cache.latest() is None

    def test_discard_where(self) -> None:
        cache = DayRecordCache(make_record(d) for d in _days(D, 3))
        dropped = cache.discard_where(lambda record: record.date > D)

        assert dropped == 2
        assert [r.date for r in cache] == [D]
        assert cache.discard_where(lambda record: False) == 0
