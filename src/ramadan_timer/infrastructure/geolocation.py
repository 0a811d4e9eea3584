"""IP based geolocation provider."""

import logging
import time

import httpx

from ramadan_timer.domain.errors import LocationTimeout, LocationUnavailable, PermissionDenied
from ramadan_timer.domain.models import Location, PermissionState
from ramadan_timer.services.ports import GeolocationOptions, GeolocationPort

logger = logging.getLogger(__name__)

IPAPI_URL = "http://ip-api.com/json/"


class IpGeolocationProvider(GeolocationPort):
    """Approximate position from the public IP address."""

    def __init__(
        self,
        *,
        enabled: bool = True,
        url: str = IPAPI_URL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize provider.

        Args:
            enabled: When False the provider behaves as a denied permission
            url: Lookup endpoint
            client: Pre-built HTTP client
        """
        self._enabled = enabled
        self._url = url
        self._client = client
        self._last: tuple[float, Location] | None = None

    async def permission_state(self) -> PermissionState:
        return PermissionState.GRANTED if self._enabled else PermissionState.DENIED

    async def current_position(self, options: GeolocationOptions) -> Location:
        if not self._enabled:
            raise PermissionDenied("Geolocation is disabled.")

        if self._last is not None and options.maximum_age > 0:
            fetched_at, location = self._last
            if time.monotonic() - fetched_at <= options.maximum_age:
                return location

        params = {"fields": "status,message,city,lat,lon"}
        try:
            if self._client is not None:
                response = await self._client.get(self._url, params=params, timeout=options.timeout)
            else:
                async with httpx.AsyncClient(timeout=options.timeout) as client:
                    response = await client.get(self._url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise LocationTimeout("The request to get location timed out.") from e
        except (httpx.HTTPError, ValueError) as e:
            raise LocationUnavailable(f"Location information is unavailable: {e}") from e

        if data.get("status") != "success":
            raise LocationUnavailable(
                f"Location information is unavailable: {data.get('message', 'unknown error')}"
            )

        try:
            location = Location(
                latitude=float(data["lat"]),
                longitude=float(data["lon"]),
                city=data.get("city", "") or "",
            )
        except (KeyError, TypeError, ValueError) as e:
            raise LocationUnavailable(f"Invalid location response: {e}") from e

        logger.info(f"Position from IP lookup: {location.city or 'unknown city'}")
        self._last = (time.monotonic(), location)
        return location
