"""Service layer - Business logic."""

from ramadan_timer.services.cache import DayRecordCache
from ramadan_timer.services.location_service import LocationResult, LocationService
from ramadan_timer.services.notification_service import (
    INVALID_HANDLE,
    NotificationHandle,
    NotificationScheduler,
    NotificationService,
)
from ramadan_timer.services.ports import (
    EventBusPort,
    GeolocationPort,
    KeyValueStorePort,
    NotificationSinkPort,
    SchedulerPort,
    SettingsRepositoryPort,
)
from ramadan_timer.services.prayer_service import PrayerTimesFetcher
from ramadan_timer.services.selection import ActivePeriodSelector
from ramadan_timer.services.timer_service import RamadanTimerService, TimerView

__all__ = [
    "INVALID_HANDLE",
    "ActivePeriodSelector",
    "DayRecordCache",
    "EventBusPort",
    "GeolocationPort",
    "KeyValueStorePort",
    "LocationResult",
    "LocationService",
    "NotificationHandle",
    "NotificationScheduler",
    "NotificationService",
    "NotificationSinkPort",
    "PrayerTimesFetcher",
    "RamadanTimerService",
    "SchedulerPort",
    "SettingsRepositoryPort",
    "TimerView",
]
