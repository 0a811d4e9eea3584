"""Infrastructure layer - Adapters and implementations."""

from ramadan_timer.infrastructure.event_bus import InMemoryEventBus
from ramadan_timer.infrastructure.geolocation import IpGeolocationProvider
from ramadan_timer.infrastructure.notifier import PlyerNotificationSink
from ramadan_timer.infrastructure.scheduler import APSchedulerAdapter
from ramadan_timer.infrastructure.settings_repository import SettingsRepository
from ramadan_timer.infrastructure.state_store import InMemoryStateStore, JsonFileStateStore

__all__ = [
    "APSchedulerAdapter",
    "InMemoryEventBus",
    "InMemoryStateStore",
    "IpGeolocationProvider",
    "JsonFileStateStore",
    "PlyerNotificationSink",
    "SettingsRepository",
]
