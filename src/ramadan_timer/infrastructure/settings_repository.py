"""AppSettings persistence on top of a key/value store."""

import logging

from ramadan_timer.domain.models import (
    HIJRI_ADJUSTMENT_RANGE,
    SUPPORTED_LANGUAGES,
    AppSettings,
    CalculationMethod,
    Location,
    NotificationPreferences,
)
from ramadan_timer.services.ports import (
    KEY_CALCULATION_METHOD,
    KEY_HIJRI_ADJUSTMENT,
    KEY_IFTAR_NOTIFICATION,
    KEY_LANGUAGE,
    KEY_LOCATION,
    KEY_LOCATION_PERMISSION,
    KEY_NOTIFICATION_TIME,
    KEY_NOTIFICATIONS_ENABLED,
    KEY_SEHRI_NOTIFICATION,
    KeyValueStorePort,
    SettingsRepositoryPort,
)

logger = logging.getLogger(__name__)


class SettingsRepository(SettingsRepositoryPort):
    """Reads settings once at startup, writes them on change."""

    def __init__(self, store: KeyValueStorePort) -> None:
        self._store = store

    @property
    def store(self) -> KeyValueStorePort:
        return self._store

    async def load(self) -> AppSettings:
        """Load settings, falling back to defaults for unusable values."""
        location = None
        location_data = await self._store.get(KEY_LOCATION)
        if location_data:
            try:
                location = Location.from_dict(location_data)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Ignoring stored location: {e}")

        language = await self._store.get(KEY_LANGUAGE, "en")
        if language not in SUPPORTED_LANGUAGES:
            logger.warning(f"Unsupported stored language {language!r}, using 'en'")
            language = "en"

        method_value = await self._store.get(KEY_CALCULATION_METHOD, CalculationMethod.KARACHI.value)
        try:
            method = CalculationMethod(method_value)
        except ValueError:
            logger.warning(f"Unknown stored calculation method {method_value!r}, using karachi")
            method = CalculationMethod.KARACHI

        hijri_adjustment = await self._store.get(KEY_HIJRI_ADJUSTMENT, 0)
        if not isinstance(hijri_adjustment, int) or hijri_adjustment not in HIJRI_ADJUSTMENT_RANGE:
            logger.warning(f"Invalid stored Hijri adjustment {hijri_adjustment!r}, using 0")
            hijri_adjustment = 0

        lead_minutes = await self._store.get(KEY_NOTIFICATION_TIME, 15)
        if not isinstance(lead_minutes, int) or lead_minutes < 0:
            lead_minutes = 15

        return AppSettings(
            location=location,
            location_permission_granted=await self._store.get(KEY_LOCATION_PERMISSION) is True,
            language=language,
            calculation_method=method,
            hijri_adjustment=hijri_adjustment,
            notifications=NotificationPreferences(
                enabled=await self._store.get(KEY_NOTIFICATIONS_ENABLED) is True,
                sehri_enabled=await self._store.get(KEY_SEHRI_NOTIFICATION) is True,
                iftar_enabled=await self._store.get(KEY_IFTAR_NOTIFICATION) is True,
                lead_minutes=lead_minutes,
            ),
        )

    async def save(self, settings: AppSettings) -> None:
        """Write every setting."""
        if settings.location is not None:
            await self._store.set(KEY_LOCATION, settings.location.to_dict())
        await self._store.set(KEY_LOCATION_PERMISSION, settings.location_permission_granted)
        await self._store.set(KEY_LANGUAGE, settings.language)
        await self._store.set(KEY_CALCULATION_METHOD, settings.calculation_method.value)
        await self._store.set(KEY_HIJRI_ADJUSTMENT, settings.hijri_adjustment)
        await self._store.set(KEY_NOTIFICATIONS_ENABLED, settings.notifications.enabled)
        await self._store.set(KEY_SEHRI_NOTIFICATION, settings.notifications.sehri_enabled)
        await self._store.set(KEY_IFTAR_NOTIFICATION, settings.notifications.iftar_enabled)
        await self._store.set(KEY_NOTIFICATION_TIME, settings.notifications.lead_minutes)
        logger.info("Settings saved.")
