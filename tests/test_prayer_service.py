"""Tests for prayer times fetching."""

import asyncio
import json
from datetime import date, datetime, time, timedelta

import httpx
import pytest

from conftest import MECCA, RIYADH, api_body, mock_client, timings_payload
from ramadan_timer.domain.errors import NetworkError, ParseError
from ramadan_timer.domain.models import CalculationMethod
from ramadan_timer.services.prayer_service import (
    PrayerTimesFetcher,
    convert_time_string_to_date,
    format_date_for_api,
    resolve_timezone_name,
)


class TestConvertTimeString:
    """HH:MM anchoring tests."""

    def test_roundtrip_ignores_time_of_day(self) -> None:
        """Test hour and minute survive regardless of the day's own time."""
        day = datetime(2024, 3, 11, 22, 45, 13, tzinfo=RIYADH)
        result = convert_time_string_to_date("05:17", day)

        assert (result.hour, result.minute) == (5, 17)
        assert result.date() == date(2024, 3, 11)
        assert result.second == 0
        assert result.tzinfo is RIYADH

    def test_plain_date_with_zone(self) -> None:
        result = convert_time_string_to_date("18:29", date(2024, 3, 11), RIYADH)
        assert result == datetime(2024, 3, 11, 18, 29, tzinfo=RIYADH)

    def test_zone_suffix_ignored(self) -> None:
        result = convert_time_string_to_date("04:55 (+03)", date(2024, 3, 11), RIYADH)
        assert result.time() == time(4, 55)

    @pytest.mark.parametrize("value", ["", "5pm", "25:00", "12:61", "ab:cd"])
    def test_invalid_strings(self, value: str) -> None:
        with pytest.raises(ParseError):
            convert_time_string_to_date(value, date(2024, 3, 11), RIYADH)


class TestHelpers:
    """Formatting helpers."""

    def test_format_date_for_api(self) -> None:
        assert format_date_for_api(date(2024, 3, 1)) == "01-03-2024"

    def test_timezone_for_mecca(self) -> None:
        assert resolve_timezone_name(*MECCA) == "Asia/Riyadh"


class TestPrayerTimesFetcher:
    """Fetcher tests against a mocked upstream."""

    @staticmethod
    def _fetcher(handler) -> PrayerTimesFetcher:
        return PrayerTimesFetcher(client=mock_client(handler))

    def test_fetch_day_mecca(self) -> None:
        """Test the Mecca, 2024-03-11, karachi scenario."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=api_body(timings_payload(date(2024, 3, 11))))

        day = date(2024, 3, 11)
        record = asyncio.run(
            self._fetcher(handler).fetch_day(*MECCA, day, CalculationMethod.KARACHI)
        )

        assert record.date == day
        start_of_day = datetime.combine(day, time(0, 0), tzinfo=RIYADH)
        end_of_day = datetime.combine(day, time(23, 59), tzinfo=RIYADH)
        assert start_of_day < record.sehri_time < end_of_day
        assert start_of_day < record.iftar_time < end_of_day
        assert record.sehri_time < record.iftar_time
        assert record.sehri_time.strftime("%H:%M") == "05:17"
        assert record.iftar_time.strftime("%H:%M") == "18:29"
        assert record.method_id == 1
        assert record.gregorian_date == "Monday, 11 March 2024"
        assert record.hijri_date == "1 Ramaḍān, 1445 AH"
        assert record.hijri_date_ar == "1 رَمَضان, 1445"

        request = requests[0]
        assert request.url.path == "/v1/timings/11-03-2024"
        assert request.url.params["method"] == "1"
        assert request.url.params["school"] == "1"
        assert request.url.params["latitude"] == "21.4225"
        assert request.url.params["timezonestring"] == "Asia/Riyadh"

    def test_method_is_sent_by_id(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.params["method"])
            return httpx.Response(200, json=api_body(timings_payload(date(2024, 3, 11))))

        asyncio.run(self._fetcher(handler).fetch_day(*MECCA, date(2024, 3, 11), "tehran"))
        assert seen == ["7"]

    def test_unknown_method(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        with pytest.raises(ValueError):
            asyncio.run(self._fetcher(handler).fetch_day(*MECCA, date(2024, 3, 11), "hanafi"))

    def test_non_success_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="Service Unavailable")

        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(self._fetcher(handler).fetch_day(*MECCA, date(2024, 3, 11)))
        assert exc_info.value.status_code == 503

    def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError):
            asyncio.run(self._fetcher(handler).fetch_day(*MECCA, date(2024, 3, 11)))

    def test_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(ParseError):
            asyncio.run(self._fetcher(handler).fetch_day(*MECCA, date(2024, 3, 11)))

    def test_error_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"code": 400, "status": "BAD_REQUEST", "data": "x"})

        with pytest.raises(ParseError):
            asyncio.run(self._fetcher(handler).fetch_day(*MECCA, date(2024, 3, 11)))

    def test_missing_field(self) -> None:
        payload = timings_payload(date(2024, 3, 11))
        del payload["timings"]["Imsak"]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=json.dumps(api_body(payload)))

        with pytest.raises(ParseError):
            asyncio.run(self._fetcher(handler).fetch_day(*MECCA, date(2024, 3, 11)))

    def test_bad_time_string(self) -> None:
        payload = timings_payload(date(2024, 3, 11), maghrib="sunset")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=api_body(payload))

        with pytest.raises(ParseError):
            asyncio.run(self._fetcher(handler).fetch_day(*MECCA, date(2024, 3, 11)))

    def test_fetch_range(self) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            day = datetime.strptime(request.url.path.rsplit("/", 1)[1], "%d-%m-%Y").date()
            return httpx.Response(200, json=api_body(timings_payload(day)))

        start = date(2024, 3, 10)
        records = asyncio.run(self._fetcher(handler).fetch_range(*MECCA, start, 4))

        assert [r.date for r in records] == [start + timedelta(days=i) for i in range(4)]
        assert paths == [
            "/v1/timings/10-03-2024",
            "/v1/timings/11-03-2024",
            "/v1/timings/12-03-2024",
            "/v1/timings/13-03-2024",
        ]

    def test_fetch_range_fails_whole(self) -> None:
        """Test one failing day aborts the range."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("11-03-2024"):
                return httpx.Response(500)
            day = datetime.strptime(request.url.path.rsplit("/", 1)[1], "%d-%m-%Y").date()
            return httpx.Response(200, json=api_body(timings_payload(day)))

        with pytest.raises(NetworkError):
            asyncio.run(self._fetcher(handler).fetch_range(*MECCA, date(2024, 3, 10), 4))

    def test_fetch_month(self) -> None:
        days = [date(2024, 3, 1) + timedelta(days=i) for i in range(31)]
        entries = [timings_payload(d) for d in reversed(days)]

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/calendar/2024/3"
            return httpx.Response(200, json=api_body(entries))

        records = asyncio.run(self._fetcher(handler).fetch_month(*MECCA, 2024, 3))

        assert len(records) == 31
        assert [r.date for r in records] == days

    def test_fetch_month_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=api_body([]))

        with pytest.raises(ParseError):
            asyncio.run(self._fetcher(handler).fetch_month(*MECCA, 2024, 3))

    def test_owned_client_closed(self) -> None:
        async def run() -> bool:
            async with PrayerTimesFetcher() as fetcher:
                client = fetcher._client
            return client.is_closed

        assert asyncio.run(run()) is True
