"""Shared fixtures and fakes."""

import inspect
from datetime import date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo

import httpx
import pytest

from ramadan_timer.domain.errors import NetworkError
from ramadan_timer.domain.models import CalculationMethod, DayRecord, Location, PermissionState
from ramadan_timer.services.ports import (
    GeolocationOptions,
    GeolocationPort,
    JobCallback,
    NotificationMessage,
    NotificationSinkPort,
    SchedulerPort,
)

RIYADH = ZoneInfo("Asia/Riyadh")
MECCA = (21.4225, 39.8262)
KARACHI = Location(latitude=24.8607, longitude=67.0011, city="Karachi")


def make_record(
    day: date,
    sehri: str = "05:00",
    iftar: str = "18:30",
    tz: ZoneInfo = RIYADH,
    hijri_day: int = 1,
) -> DayRecord:
    """DayRecord with wall-clock times on `day`."""
    sh, sm = map(int, sehri.split(":"))
    ih, im = map(int, iftar.split(":"))
    return DayRecord(
        date=day,
        sehri_time=datetime.combine(day, time(sh, sm), tzinfo=tz),
        iftar_time=datetime.combine(day, time(ih, im), tzinfo=tz),
        method_name="University of Islamic Sciences, Karachi",
        method_id=1,
        gregorian_date=day.strftime("%A, %d %B %Y"),
        hijri_date=f"{hijri_day} Ramaḍān, 1445 AH",
        hijri_date_ar=f"{hijri_day} رَمَضان, 1445",
        timestamp=int(datetime.combine(day, time()).timestamp()),
    )


def timings_payload(
    day: date,
    imsak: str = "05:17",
    maghrib: str = "18:29",
    method_id: int = 1,
    method_name: str = "University of Islamic Sciences, Karachi",
) -> dict[str, Any]:
    """One day's entry the way the timings API returns it."""
    return {
        "timings": {
            "Fajr": "05:27",
            "Sunrise": "06:40",
            "Dhuhr": "12:34",
            "Asr": "15:57",
            "Imsak": imsak,
            "Maghrib": maghrib,
            "Isha": "19:59",
        },
        "date": {
            "readable": day.strftime("%d %b %Y"),
            "timestamp": str(int(datetime.combine(day, time()).timestamp())),
            "gregorian": {
                "date": day.strftime("%d-%m-%Y"),
                "day": day.strftime("%d"),
                "weekday": {"en": day.strftime("%A")},
                "month": {"number": day.month, "en": day.strftime("%B")},
                "year": str(day.year),
            },
            "hijri": {
                "date": "01-09-1445",
                "day": "1",
                "weekday": {"en": "Al Athnayn", "ar": "الاثنين"},
                "month": {"number": 9, "en": "Ramaḍān", "ar": "رَمَضان"},
                "year": "1445",
            },
        },
        "meta": {
            "latitude": MECCA[0],
            "longitude": MECCA[1],
            "timezone": "Asia/Riyadh",
            "method": {"id": method_id, "name": method_name},
            "school": "STANDARD",
        },
    }


def api_body(data: Any) -> dict[str, Any]:
    return {"code": 200, "status": "OK", "data": data}


class FakeScheduler(SchedulerPort):
    """Records jobs instead of running them."""

    def __init__(self) -> None:
        self.jobs: dict[str, tuple[datetime | None, JobCallback]] = {}
        self.intervals: dict[str, float] = {}
        self.cancelled: list[str] = []

    def schedule_at(self, run_time: datetime, callback: JobCallback, job_id: str) -> None:
        self.jobs[job_id] = (run_time, callback)

    def schedule_interval(self, seconds: float, callback: JobCallback, job_id: str) -> None:
        self.jobs[job_id] = (None, callback)
        self.intervals[job_id] = seconds

    def cancel(self, job_id: str) -> bool:
        self.cancelled.append(job_id)
        self.intervals.pop(job_id, None)
        return self.jobs.pop(job_id, None) is not None

    def get_scheduled_jobs(self) -> list[tuple[str, datetime]]:
        return sorted(
            (job_id, run_time) for job_id, (run_time, _) in self.jobs.items() if run_time
        )

    async def fire(self, job_id: str) -> None:
        """Run a job the way the scheduler would."""
        run_time, callback = self.jobs[job_id]
        if run_time is not None:
            del self.jobs[job_id]
        result = callback()
        if inspect.isawaitable(result):
            await result


class FakeSink(NotificationSinkPort):
    """Collects messages."""

    def __init__(self, supported: bool = True, grant: bool = True) -> None:
        self.supported = supported
        self.grant = grant
        self.sent: list[NotificationMessage] = []
        self.permission_requests = 0

    def is_supported(self) -> bool:
        return self.supported

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        return self.grant

    def send(self, message: NotificationMessage) -> bool:
        self.sent.append(message)
        return True


class FakeProvider(GeolocationPort):
    """Returns a fixed position or raises."""

    def __init__(
        self,
        location: Location | None = KARACHI,
        error: Exception | None = None,
        state: PermissionState = PermissionState.PROMPT,
    ) -> None:
        self.location = location
        self.error = error
        self.state = state
        self.queries = 0

    async def permission_state(self) -> PermissionState:
        return self.state

    async def current_position(self, options: GeolocationOptions) -> Location:
        self.queries += 1
        if self.error is not None:
            raise self.error
        return self.location


class FakeFetcher:
    """Serves records from a dict, counting calls."""

    def __init__(self, records: dict[date, DayRecord] | None = None) -> None:
        self.records = dict(records or {})
        self.day_calls: list[tuple[date, CalculationMethod]] = []
        self.range_calls: list[tuple[date, int, CalculationMethod]] = []
        self.fail = False

    async def fetch_day(
        self,
        latitude: float,
        longitude: float,
        day: date,
        method: CalculationMethod = CalculationMethod.KARACHI,
    ) -> DayRecord:
        self.day_calls.append((day, method))
        if self.fail or day not in self.records:
            raise NetworkError(f"No data for {day}", status_code=503)
        return self.records[day]

    async def fetch_range(
        self,
        latitude: float,
        longitude: float,
        start_date: date,
        days: int,
        method: CalculationMethod = CalculationMethod.KARACHI,
    ) -> list[DayRecord]:
        self.range_calls.append((start_date, days, method))
        if self.fail:
            raise NetworkError("Upstream down", status_code=503)
        return [
            record
            for day, record in sorted(self.records.items())
            if 0 <= (day - start_date).days < days
        ]

    async def aclose(self) -> None:
        pass


def mock_client(handler) -> httpx.AsyncClient:
    """AsyncClient answering through `handler`."""
    return httpx.AsyncClient(
        base_url="https://api.aladhan.com/v1",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def fake_sink() -> FakeSink:
    return FakeSink()
