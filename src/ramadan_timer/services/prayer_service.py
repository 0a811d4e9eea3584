"""Prayer time fetching from the upstream timings API."""

import logging
import re
from datetime import date, datetime, time, timedelta, tzinfo
from functools import lru_cache
from types import TracebackType
from typing import Any, Self
from zoneinfo import ZoneInfo

import httpx
from timezonefinder import TimezoneFinder

from ramadan_timer.config import DEFAULT_API_BASE_URL
from ramadan_timer.domain.errors import NetworkError, ParseError
from ramadan_timer.domain.models import CalculationMethod, DayRecord

logger = logging.getLogger(__name__)

# Shafi'i juristic school for Asr
SCHOOL = 1

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})")

_tz_finder: TimezoneFinder | None = None


@lru_cache(maxsize=64)
def resolve_timezone_name(latitude: float, longitude: float) -> str | None:
    """IANA zone for coordinates (None on open sea)."""
    global _tz_finder
    if _tz_finder is None:
        _tz_finder = TimezoneFinder()
    return _tz_finder.timezone_at(lat=latitude, lng=longitude)


def resolve_timezone(latitude: float, longitude: float) -> ZoneInfo:
    """Zone for coordinates, UTC when unknown."""
    return ZoneInfo(resolve_timezone_name(latitude, longitude) or "UTC")


def convert_time_string_to_date(
    time_string: str, day: date | datetime, tz: tzinfo | None = None
) -> datetime:
    """
    Anchor an HH:MM wall-clock string to a calendar day.

    Any time-of-day on `day` is ignored. The string is taken to already be in
    `tz` (or in `day`'s own zone when `day` is an aware datetime).

    Raises:
        ParseError: The string does not start with HH:MM.
    """
    match = _TIME_PATTERN.match(time_string)
    if match is None:
        raise ParseError(f"Invalid time string: {time_string!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ParseError(f"Invalid time string: {time_string!r}")

    if isinstance(day, datetime):
        if tz is None:
            tz = day.tzinfo
        day = day.date()

    return datetime.combine(day, time(hours, minutes), tzinfo=tz)


def format_date_for_api(day: date) -> str:
    """DD-MM-YYYY."""
    return day.strftime("%d-%m-%Y")


def _coerce_method(method: CalculationMethod | str) -> CalculationMethod:
    # Unknown methods raise ValueError here; there is no silent default.
    return CalculationMethod(method)


class PrayerTimesFetcher:
    """Sehri/Iftar times from the Aladhan timings API."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize fetcher.

        Args:
            base_url: API root
            timeout: Request timeout in seconds
            client: Pre-built client (tests inject a MockTransport one)
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _params(
        self, latitude: float, longitude: float, method: CalculationMethod
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "latitude": latitude,
            "longitude": longitude,
            "method": method.method_id,
            "school": SCHOOL,
        }
        tz_name = resolve_timezone_name(latitude, longitude)
        if tz_name:
            params["timezonestring"] = tz_name
        return params

    async def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

        if not response.is_success:
            raise NetworkError(
                f"API request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ParseError(f"Response is not valid JSON: {e}") from e

        if not isinstance(body, dict) or body.get("code") != 200 or "data" not in body:
            status = body.get("status") if isinstance(body, dict) else None
            raise ParseError(f"Unexpected API response: {status!r}")
        return body

    def _to_record(
        self,
        payload: dict[str, Any],
        day: date,
        tz: tzinfo,
        meta: dict[str, Any] | None = None,
    ) -> DayRecord:
        try:
            timings = payload["timings"]
            calendar = payload["date"]
            gregorian = calendar["gregorian"]
            hijri = calendar["hijri"]
            method = (meta or payload["meta"])["method"]

            return DayRecord(
                date=day,
                sehri_time=convert_time_string_to_date(timings["Imsak"], day, tz),
                iftar_time=convert_time_string_to_date(timings["Maghrib"], day, tz),
                method_name=method["name"],
                method_id=int(method["id"]),
                gregorian_date=(
                    f"{gregorian['weekday']['en']}, {gregorian['day']} "
                    f"{gregorian['month']['en']} {gregorian['year']}"
                ),
                hijri_date=f"{hijri['day']} {hijri['month']['en']}, {hijri['year']} AH",
                hijri_date_ar=f"{hijri['day']} {hijri['month']['ar']}, {hijri['year']}",
                timestamp=int(calendar["timestamp"]),
            )
        except ParseError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(f"Malformed timings payload for {day}: {e!r}") from e

    async def fetch_day(
        self,
        latitude: float,
        longitude: float,
        day: date,
        method: CalculationMethod | str = CalculationMethod.KARACHI,
    ) -> DayRecord:
        """
        Fetch one day's times.

        Raises:
            NetworkError: Transport failure or non-2xx status
            ParseError: Response does not have the expected shape
            ValueError: Unknown calculation method
        """
        method = _coerce_method(method)
        url = f"/timings/{format_date_for_api(day)}"
        logger.debug(f"Fetching timings for {day} at ({latitude}, {longitude}), method={method.value}")

        body = await self._get_json(url, self._params(latitude, longitude, method))
        record = self._to_record(body["data"], day, resolve_timezone(latitude, longitude))

        logger.info(
            f"Timings for {day}: sehri {record.sehri_time:%H:%M}, iftar {record.iftar_time:%H:%M}"
        )
        return record

    async def fetch_range(
        self,
        latitude: float,
        longitude: float,
        start_date: date,
        days: int,
        method: CalculationMethod | str = CalculationMethod.KARACHI,
    ) -> list[DayRecord]:
        """
        Fetch `days` consecutive days, one request at a time.

        The first failing day aborts the whole range; nothing is returned
        for the days that did succeed.
        """
        method = _coerce_method(method)
        results = []
        for offset in range(days):
            day = start_date + timedelta(days=offset)
            results.append(await self.fetch_day(latitude, longitude, day, method))
        return results

    async def fetch_month(
        self,
        latitude: float,
        longitude: float,
        year: int,
        month: int,
        method: CalculationMethod | str = CalculationMethod.KARACHI,
    ) -> list[DayRecord]:
        """Fetch a whole Gregorian month with a single calendar request."""
        method = _coerce_method(method)
        logger.debug(f"Fetching calendar for {year}-{month:02d} at ({latitude}, {longitude})")

        body = await self._get_json(
            f"/calendar/{year}/{month}", self._params(latitude, longitude, method)
        )
        entries = body["data"]
        if not isinstance(entries, list) or not entries:
            raise ParseError(f"Calendar for {year}-{month:02d} is empty")

        tz = resolve_timezone(latitude, longitude)
        meta = entries[0].get("meta") if isinstance(entries[0], dict) else None
        records = []
        for entry in entries:
            try:
                gregorian = entry["date"]["gregorian"]
                day = date(
                    int(gregorian["year"]),
                    int(gregorian["month"]["number"]),
                    int(gregorian["day"]),
                )
            except (KeyError, TypeError, ValueError) as e:
                raise ParseError(f"Malformed calendar entry: {e!r}") from e
            records.append(self._to_record(entry, day, tz, meta=meta))

        return sorted(records, key=lambda r: r.date)
