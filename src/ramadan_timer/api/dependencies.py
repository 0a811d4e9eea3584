"""Application state and dependencies."""

import logging
from dataclasses import dataclass
from datetime import datetime

from ramadan_timer.config import AppConfig, get_config
from ramadan_timer.domain.errors import RamadanTimerError
from ramadan_timer.domain.events import CacheUpdatedEvent, DomainEvent, NotificationSentEvent
from ramadan_timer.infrastructure.event_bus import InMemoryEventBus
from ramadan_timer.infrastructure.geolocation import IpGeolocationProvider
from ramadan_timer.infrastructure.notifier import PlyerNotificationSink
from ramadan_timer.infrastructure.scheduler import APSchedulerAdapter
from ramadan_timer.infrastructure.settings_repository import SettingsRepository
from ramadan_timer.infrastructure.state_store import JsonFileStateStore
from ramadan_timer.services.location_service import LocationService
from ramadan_timer.services.notification_service import NotificationScheduler, NotificationService
from ramadan_timer.services.ports import GeolocationPort, KeyValueStorePort, NotificationSinkPort
from ramadan_timer.services.prayer_service import PrayerTimesFetcher
from ramadan_timer.services.timer_service import RamadanTimerService

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Application state container."""

    config: AppConfig
    store: KeyValueStorePort
    settings_repository: SettingsRepository
    fetcher: PrayerTimesFetcher
    timer_service: RamadanTimerService
    location_service: LocationService
    notification_service: NotificationService
    scheduler_adapter: APSchedulerAdapter
    event_bus: InMemoryEventBus
    started_at: datetime
    last_refresh_at: datetime | None = None
    last_notification_at: datetime | None = None

    def on_cache_updated(self, event: DomainEvent) -> None:
        self.last_refresh_at = event.occurred_at

    def on_notification_sent(self, event: DomainEvent) -> None:
        self.last_notification_at = event.occurred_at


# Global application state (singleton)
_app_state: AppState | None = None


async def initialize_app_state(
    config: AppConfig | None = None,
    store: KeyValueStorePort | None = None,
    fetcher: PrayerTimesFetcher | None = None,
    geolocation: GeolocationPort | None = None,
    sink: NotificationSinkPort | None = None,
) -> AppState:
    """
    Initialize application state.

    Args:
        config: Configuration, from the environment by default
        store: Persisted state, a JSON file at config.state_path by default
        fetcher: Prayer times client
        geolocation: Position provider
        sink: Notification delivery

    Returns:
        Initialized AppState
    """
    global _app_state

    if _app_state is not None:
        return _app_state

    config = config or get_config()

    # Persisted state and settings
    store = store or JsonFileStateStore(config.state_path)
    settings_repo = SettingsRepository(store)
    settings = await settings_repo.load()

    # Infrastructure
    event_bus = InMemoryEventBus()
    scheduler_adapter = APSchedulerAdapter()
    fetcher = fetcher or PrayerTimesFetcher(
        base_url=config.api_base_url,
        timeout=config.http_timeout,
    )
    geolocation = geolocation or IpGeolocationProvider(enabled=config.geolocation_enabled)
    sink = sink or PlyerNotificationSink(app_icon=config.notification_icon)

    # Services
    notification_service = NotificationService(
        scheduler=NotificationScheduler(scheduler_adapter, sink, event_bus=event_bus),
        sink=sink,
        preferences=settings.notifications,
        language=settings.language,
        event_bus=event_bus,
    )
    if settings.notifications.enabled:
        await notification_service.request_permission()

    timer_service = RamadanTimerService(
        fetcher=fetcher,
        scheduler=scheduler_adapter,
        settings=settings,
        settings_repository=settings_repo,
        notification_service=notification_service,
        event_bus=event_bus,
        range_days=config.range_days,
        poll_interval_seconds=config.poll_interval_seconds,
    )

    _app_state = AppState(
        config=config,
        store=store,
        settings_repository=settings_repo,
        fetcher=fetcher,
        timer_service=timer_service,
        location_service=LocationService(geolocation, store),
        notification_service=notification_service,
        scheduler_adapter=scheduler_adapter,
        event_bus=event_bus,
        started_at=datetime.now(),
    )
    event_bus.subscribe(CacheUpdatedEvent, _app_state.on_cache_updated)
    event_bus.subscribe(NotificationSentEvent, _app_state.on_notification_sent)

    return _app_state


async def load_initial_times(state: AppState) -> None:
    """Fetch times for the stored location, if there is one."""
    if state.timer_service.settings.location is None:
        logger.info("No stored location yet, waiting for one")
        return
    try:
        await state.timer_service.refresh()
    except RamadanTimerError as e:
        logger.error(f"Error fetching prayer times: {e}")


def get_app_state() -> AppState:
    """Get current application state."""
    if _app_state is None:
        raise RuntimeError("Application state not initialized")
    return _app_state


async def shutdown_app_state() -> None:
    """Shutdown application state."""
    global _app_state

    if _app_state is not None:
        await _app_state.timer_service.shutdown()
        _app_state.scheduler_adapter.shutdown()
        await _app_state.fetcher.aclose()
        _app_state = None
