"""Location acquisition and manual override."""

import logging
import math
from dataclasses import dataclass

from ramadan_timer.domain.errors import (
    InvalidInput,
    LocationTimeout,
    LocationUnavailable,
    PermissionDenied,
)
from ramadan_timer.domain.models import Location, PermissionState
from ramadan_timer.services.ports import (
    KEY_LOCATION,
    KEY_LOCATION_PERMISSION,
    KEY_PERMISSION_STATE,
    GeolocationOptions,
    GeolocationPort,
    KeyValueStorePort,
)

logger = logging.getLogger(__name__)

LocationError = PermissionDenied | LocationTimeout | LocationUnavailable


@dataclass(frozen=True)
class LocationResult:
    """Either a location or the reason there is none."""

    location: Location | None = None
    error: LocationError | None = None

    @property
    def ok(self) -> bool:
        return self.location is not None


def parse_coordinates(latitude: str | float, longitude: str | float) -> Location:
    """
    Build a Location from user input.

    Raises:
        InvalidInput: Non-numeric or out-of-range values.
    """
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"Invalid coordinates: {latitude!r}, {longitude!r}") from e

    if math.isnan(lat) or math.isnan(lon):
        raise InvalidInput(f"Invalid coordinates: {latitude!r}, {longitude!r}")

    try:
        return Location(latitude=lat, longitude=lon)
    except ValueError as e:
        raise InvalidInput(str(e)) from e


class LocationService:
    """Stored, detected or manually entered location."""

    def __init__(
        self,
        provider: GeolocationPort,
        store: KeyValueStorePort,
        options: GeolocationOptions | None = None,
    ) -> None:
        """
        Initialize location service.

        Args:
            provider: Geolocation adapter
            store: Persisted state
            options: Position query options
        """
        self._provider = provider
        self._store = store
        self._options = options or GeolocationOptions()

    async def _stored_location(self) -> Location | None:
        if await self._store.get(KEY_LOCATION_PERMISSION) is not True:
            return None
        data = await self._store.get(KEY_LOCATION)
        if not data:
            return None
        try:
            return Location.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Stored location is invalid: {e}")
            return None

    async def request_location(self) -> LocationResult:
        """Use the stored location if still permitted, otherwise ask the provider."""
        state = await self._provider.permission_state()
        logger.debug(f"Geolocation permission state: {state.value}")

        if state is not PermissionState.DENIED:
            stored = await self._stored_location()
            if stored is not None:
                logger.info(f"Using stored location: {stored.latitude}, {stored.longitude}")
                return LocationResult(location=stored)

        try:
            if state is PermissionState.DENIED:
                raise PermissionDenied(
                    "Location permission was previously denied. Reset it and try again."
                )
            location = await self._provider.current_position(self._options)
        except (PermissionDenied, LocationTimeout, LocationUnavailable) as e:
            logger.error(f"Error getting location: {e}")
            await self._store.set(KEY_LOCATION_PERMISSION, False)
            await self._store.set(KEY_PERMISSION_STATE, state.value)
            return LocationResult(error=e)

        await self._remember(location)
        logger.info(f"Location permission granted: {location.latitude}, {location.longitude}")
        return LocationResult(location=location)

    async def set_manual_location(
        self, latitude: str | float, longitude: str | float
    ) -> Location:
        """
        Override the location with user-entered coordinates.

        Raises:
            InvalidInput: Coordinates could not be parsed.
        """
        location = parse_coordinates(latitude, longitude)
        await self._remember(location)
        logger.info(f"Location set manually: {location.latitude:.4f}, {location.longitude:.4f}")
        return location

    async def _remember(self, location: Location) -> None:
        await self._store.set(KEY_LOCATION_PERMISSION, True)
        await self._store.set(KEY_LOCATION, location.to_dict())
