"""Application state: fetching, cache, selection and notifications together."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, tzinfo

from ramadan_timer.domain.errors import InvalidInput, PermissionDenied
from ramadan_timer.domain.events import (
    CacheUpdatedEvent,
    SelectionChangedEvent,
    SettingsChangedEvent,
)
from ramadan_timer.domain.models import (
    HIJRI_ADJUSTMENT_RANGE,
    SUPPORTED_LANGUAGES,
    ActivePeriod,
    AppSettings,
    CalculationMethod,
    DayRecord,
    Location,
    NotificationPreferences,
    SelectionState,
    adjust_hijri_date,
)
from ramadan_timer.services.cache import DayRecordCache
from ramadan_timer.services.notification_service import NotificationService
from ramadan_timer.services.ports import EventBusPort, SchedulerPort, SettingsRepositoryPort
from ramadan_timer.services.prayer_service import PrayerTimesFetcher, resolve_timezone
from ramadan_timer.services.selection import (
    ActivePeriodSelector,
    active_period_for_display,
    time_remaining,
)

logger = logging.getLogger(__name__)

POLL_JOB_ID = "selection_poll"


@dataclass(frozen=True)
class TimerView:
    """What the timer screen shows at one instant."""

    now: datetime
    location: Location | None
    is_next_day: bool
    sehri_time: datetime | None = None
    iftar_time: datetime | None = None
    active_period: ActivePeriod | None = None
    target_time: datetime | None = None
    countdown: timedelta = timedelta(0)
    day: date | None = None
    gregorian_date: str = ""
    hijri_date: str = ""
    method_name: str = ""

    @property
    def has_times(self) -> bool:
        return self.sehri_time is not None and self.iftar_time is not None


class RamadanTimerService:
    """Owns the day cache and keeps selection and notifications current."""

    def __init__(
        self,
        fetcher: PrayerTimesFetcher,
        scheduler: SchedulerPort,
        settings: AppSettings | None = None,
        settings_repository: SettingsRepositoryPort | None = None,
        notification_service: NotificationService | None = None,
        event_bus: EventBusPort | None = None,
        cache: DayRecordCache | None = None,
        now_provider: Callable[[], datetime] | None = None,
        range_days: int = 4,
        poll_interval_seconds: float = 60,
    ) -> None:
        """
        Initialize timer service.

        Args:
            fetcher: Prayer times client
            scheduler: Timer adapter for the polling job
            settings: Settings loaded at startup
            settings_repository: Persists changed settings (optional)
            notification_service: Re-armed on selection changes (optional)
            event_bus: Event bus (optional)
            cache: Day cache, a fresh one by default
            now_provider: Clock; defaults to wall time in the location's zone
            range_days: Days fetched per refresh, starting yesterday
            poll_interval_seconds: Selection re-check interval
        """
        self._fetcher = fetcher
        self._scheduler = scheduler
        self._settings = settings or AppSettings()
        self._repository = settings_repository
        self._notifications = notification_service
        self._event_bus = event_bus
        self._cache = cache if cache is not None else DayRecordCache()
        self._now_provider = now_provider
        self._range_days = range_days
        self._poll_interval = poll_interval_seconds
        self._selection = SelectionState()
        self._selector = ActivePeriodSelector(
            self._cache,
            backfill=self._fetch_one,
            on_backfilled=self._on_backfilled,
        )

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def cache(self) -> DayRecordCache:
        return self._cache

    @property
    def selector(self) -> ActivePeriodSelector:
        return self._selector

    @property
    def selection(self) -> SelectionState:
        """Selection from the last update."""
        return self._selection

    @property
    def notification_service(self) -> NotificationService | None:
        return self._notifications

    @property
    def timezone(self) -> tzinfo | None:
        """Zone of the current location."""
        location = self._settings.location
        if location is None:
            return None
        return resolve_timezone(location.latitude, location.longitude)

    def now(self) -> datetime:
        if self._now_provider is not None:
            return self._now_provider()
        tz = self.timezone
        return datetime.now(tz) if tz is not None else datetime.now().astimezone()

    async def _fetch_one(self, day: date) -> DayRecord | None:
        location = self._settings.location
        if location is None:
            return None
        return await self._fetcher.fetch_day(
            location.latitude,
            location.longitude,
            day,
            self._settings.calculation_method,
        )

    def _on_backfilled(self, record: DayRecord) -> None:
        logger.debug(f"Backfilled {record.date}, re-evaluating selection")
        self.update()

    async def refresh(self) -> list[DayRecord]:
        """
        Fetch the window starting yesterday and re-run the selection.

        Raises:
            PermissionDenied: No location is known yet
            NetworkError, ParseError: The fetch failed; the cache is untouched
        """
        location = self._settings.location
        if location is None:
            raise PermissionDenied("Location is required to fetch prayer times")

        start = self.now().date() - timedelta(days=1)
        logger.info(
            f"Refreshing {self._range_days} days from {start} "
            f"(method={self._settings.calculation_method.value})"
        )
        records = await self._fetcher.fetch_range(
            location.latitude,
            location.longitude,
            start,
            self._range_days,
            self._settings.calculation_method,
        )
        self._cache.upsert_range(records, start, self._range_days)

        if self._event_bus:
            self._event_bus.publish(CacheUpdatedEvent(records=tuple(records)))

        self.update()
        return records

    def update(self, now: datetime | None = None) -> SelectionState:
        """Re-run the selection; notify subscribers when it changed."""
        now = now or self.now()
        state = self._selector.select(now)

        if state.is_next_day:
            self._extend_window(now.date())

        if state != self._selection:
            previous = self._selection
            self._selection = state
            logger.info(
                f"Selection changed: "
                f"{previous.active.date if previous.active else None} -> "
                f"{state.active.date if state.active else None} (next_day={state.is_next_day})"
            )
            if self._event_bus:
                self._event_bus.publish(SelectionChangedEvent(selection=state))
        return state

    def _extend_window(self, today: date) -> None:
        latest = self._cache.latest()
        if latest is None:
            return
        # Keep the look-ahead bounded by the refresh window
        horizon = today + timedelta(days=self._range_days - 1)
        if latest.date < horizon:
            self._selector.request_backfill(latest.date + timedelta(days=1))

    def view(self, now: datetime | None = None) -> TimerView:
        """Snapshot for display."""
        now = now or self.now()
        state = self.update(now)
        active = state.active
        if active is None:
            return TimerView(now=now, location=self._settings.location, is_next_day=state.is_next_day)

        period = active_period_for_display(active.sehri_time, active.iftar_time, now)
        target = active.sehri_time if period is ActivePeriod.SEHRI else active.iftar_time
        hijri = adjust_hijri_date(
            active.hijri_for_language(self._settings.language),
            self._settings.hijri_adjustment,
        )
        return TimerView(
            now=now,
            location=self._settings.location,
            is_next_day=state.is_next_day,
            sehri_time=active.sehri_time,
            iftar_time=active.iftar_time,
            active_period=period,
            target_time=target,
            countdown=time_remaining(target, now),
            day=active.date,
            gregorian_date=active.gregorian_date,
            hijri_date=hijri,
            method_name=active.method_name,
        )

    async def _save(self, *changed_fields: str) -> None:
        if self._repository is not None:
            await self._repository.save(self._settings)
        if self._event_bus:
            self._event_bus.publish(SettingsChangedEvent(changed_fields=changed_fields))

    async def set_location(self, location: Location) -> list[DayRecord]:
        """Switch location, drop times computed for the old one and refetch."""
        self._settings = replace(self._settings, location=location, location_permission_granted=True)
        await self._save("location")

        await self._selector.cancel_pending()
        self._cache.clear()
        return await self.refresh()

    async def set_calculation_method(self, method: CalculationMethod | str) -> list[DayRecord]:
        """
        Switch calculation method and refetch when a location is known.

        Raises:
            InvalidInput: Unknown method
        """
        try:
            method = CalculationMethod(method)
        except ValueError as e:
            raise InvalidInput(f"Unknown calculation method: {method}") from e

        if method is self._settings.calculation_method:
            return []
        self._settings = replace(self._settings, calculation_method=method)
        await self._save("calculation_method")

        await self._selector.cancel_pending()
        stale = self._cache.discard_where(lambda record: record.method_id != method.method_id)
        if stale:
            logger.info(f"Dropped {stale} cached days computed with another method")
        if self._settings.location is None:
            if stale:
                self.update()
            return []
        return await self.refresh()

    async def set_language(self, language: str) -> None:
        if language not in SUPPORTED_LANGUAGES:
            raise InvalidInput(f"Unsupported language: {language}")
        self._settings = replace(self._settings, language=language)
        await self._save("language")
        if self._notifications is not None:
            self._notifications.set_language(language)

    async def set_hijri_adjustment(self, adjustment: int) -> None:
        if adjustment not in HIJRI_ADJUSTMENT_RANGE:
            raise InvalidInput(f"Hijri adjustment must be between -2 and 2, got {adjustment}")
        self._settings = replace(self._settings, hijri_adjustment=adjustment)
        await self._save("hijri_adjustment")

    async def set_notification_preferences(self, preferences: NotificationPreferences) -> None:
        """
        Store notification switches and re-arm timers.

        Raises:
            PermissionDenied: Notifications were switched on but permission was refused
        """
        if self._notifications is not None:
            if preferences.enabled and not self._notifications.permission_granted:
                if not await self._notifications.request_permission():
                    raise PermissionDenied("Notification permission was not granted")
            self._notifications.update_preferences(preferences)
        self._settings = replace(self._settings, notifications=preferences)
        await self._save("notifications")

    async def _tick(self) -> None:
        self.update()

    def start(self) -> None:
        """Register the periodic selection check."""
        self._scheduler.schedule_interval(self._poll_interval, self._tick, POLL_JOB_ID)
        logger.info(f"Selection poll every {self._poll_interval}s")

    async def shutdown(self) -> None:
        """Stop polling, in-flight fetches and notifications."""
        self._scheduler.cancel(POLL_JOB_ID)
        await self._selector.cancel_pending()
        if self._notifications is not None:
            self._notifications.shutdown()
        logger.info("Timer service stopped")
