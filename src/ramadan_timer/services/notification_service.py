"""Local notifications before Sehri and Iftar."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from uuid import uuid4

from ramadan_timer.domain.errors import PermissionDenied
from ramadan_timer.domain.events import DomainEvent, NotificationSentEvent, SelectionChangedEvent
from ramadan_timer.domain.models import NotificationKind, NotificationPreferences
from ramadan_timer.services.ports import (
    EventBusPort,
    NotificationMessage,
    NotificationSinkPort,
    SchedulerPort,
)

logger = logging.getLogger(__name__)

_TITLES: dict[NotificationKind, dict[str, str]] = {
    NotificationKind.SEHRI: {
        "en": "Sehri Time Approaching",
        "ar": "اقتراب وقت السحور",
        "ur": "سحری کا وقت قریب ہے",
        "hi": "सहरी का समय नज़दीक है",
    },
    NotificationKind.IFTAR: {
        "en": "Iftar Time Approaching",
        "ar": "اقتراب وقت الإفطار",
        "ur": "افطار کا وقت قریب ہے",
        "hi": "इफ्तार का समय नज़दीक है",
    },
}

_BODIES: dict[NotificationKind, dict[str, str]] = {
    NotificationKind.SEHRI: {
        "en": "Sehri time is in {minutes} minutes. Prepare for your pre-dawn meal.",
        "ar": "وقت السحور بعد {minutes} دقائق. استعد لوجبة ما قبل الفجر.",
        "ur": "سحری کا وقت {minutes} منٹ میں ہے۔ سحری کی تیاری کریں۔",
        "hi": "सहरी का समय {minutes} मिनट में है। अपने भोजन के लिए तैयार हो जाएं।",
    },
    NotificationKind.IFTAR: {
        "en": "Iftar time is in {minutes} minutes. Prepare to break your fast.",
        "ar": "وقت الإفطار بعد {minutes} دقائق. استعد لكسر صيامك.",
        "ur": "افطار کا وقت {minutes} منٹ میں ہے۔ روزہ افطار کرنے کی تیاری کریں۔",
        "hi": "इफ्तार का समय {minutes} मिनट में है। रोज़ा खोलने की तैयारी करें।",
    },
}


def build_message(kind: NotificationKind, minutes_before: int, language: str) -> NotificationMessage:
    """Localized message; unknown languages fall back to English."""
    titles = _TITLES[kind]
    bodies = _BODIES[kind]
    lang = language if language in titles else "en"
    return NotificationMessage(
        title=titles[lang],
        body=bodies[lang].format(minutes=minutes_before),
        tag=kind.tag,
    )


@dataclass(frozen=True)
class NotificationHandle:
    """Opaque reference to a scheduled notification."""

    job_id: str | None
    kind: NotificationKind | None = None
    fire_at: datetime | None = None

    @property
    def is_valid(self) -> bool:
        return self.job_id is not None


INVALID_HANDLE = NotificationHandle(job_id=None)


class NotificationScheduler:
    """One-shot notification timers behind opaque handles."""

    def __init__(
        self,
        scheduler: SchedulerPort,
        sink: NotificationSinkPort,
        event_bus: EventBusPort | None = None,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize notification scheduler.

        Args:
            scheduler: Timer adapter
            sink: Notification delivery
            event_bus: Event bus (optional)
            now_provider: Clock; must return aware datetimes when targets are aware
        """
        self._scheduler = scheduler
        self._sink = sink
        self._event_bus = event_bus
        self._now = now_provider or (lambda: datetime.now().astimezone())
        self._live: dict[str, NotificationHandle] = {}

    @property
    def live_handles(self) -> list[NotificationHandle]:
        return list(self._live.values())

    def schedule(
        self,
        target_time: datetime,
        lead_minutes: int,
        kind: NotificationKind,
        language: str = "en",
    ) -> NotificationHandle:
        """
        Arm a notification `lead_minutes` before `target_time`.

        Returns INVALID_HANDLE, without registering anything, when that
        instant is not in the future.
        """
        fire_at = target_time - timedelta(minutes=lead_minutes)
        if fire_at <= self._now():
            logger.info(f"Not scheduling {kind.value} notification in the past ({fire_at})")
            return INVALID_HANDLE

        handle = NotificationHandle(
            job_id=f"notify_{kind.value}_{uuid4().hex}",
            kind=kind,
            fire_at=fire_at,
        )
        message = build_message(kind, lead_minutes, language)
        self._scheduler.schedule_at(
            run_time=fire_at,
            callback=self._create_callback(handle, message),
            job_id=handle.job_id,
        )
        self._live[handle.job_id] = handle
        logger.info(f"Scheduled {kind.value} notification at {fire_at}")
        return handle

    def _create_callback(self, handle: NotificationHandle, message: NotificationMessage):
        async def callback() -> None:
            self._live.pop(handle.job_id, None)
            delivered = self._sink.send(message)
            logger.info(f"{message.title} (delivered={delivered})")

            if self._event_bus:
                self._event_bus.publish(
                    NotificationSentEvent(
                        kind=handle.kind,
                        title=message.title,
                        delivered=delivered,
                    )
                )

        return callback

    def cancel(self, handle: NotificationHandle) -> None:
        """Cancel a handle; fired, cancelled and invalid handles are ignored."""
        if not handle.is_valid or handle.job_id not in self._live:
            return
        del self._live[handle.job_id]
        self._scheduler.cancel(handle.job_id)
        logger.debug(f"Cancelled notification {handle.job_id}")

    def cancel_all(self) -> None:
        for handle in list(self._live.values()):
            self.cancel(handle)


class NotificationService:
    """Keeps at most one armed notification per kind in step with its inputs."""

    def __init__(
        self,
        scheduler: NotificationScheduler,
        sink: NotificationSinkPort,
        preferences: NotificationPreferences | None = None,
        language: str = "en",
        event_bus: EventBusPort | None = None,
    ) -> None:
        """
        Initialize notification service.

        Args:
            scheduler: Notification scheduler
            sink: Notification delivery, asked for permission
            preferences: Switches and lead time
            language: Message language
            event_bus: Subscribes to selection changes when given
        """
        self._scheduler = scheduler
        self._sink = sink
        self._preferences = preferences or NotificationPreferences()
        self._language = language
        self._permission_granted = False
        self._targets: dict[NotificationKind, datetime | None] = {
            NotificationKind.SEHRI: None,
            NotificationKind.IFTAR: None,
        }
        self._inputs: dict[NotificationKind, tuple | None] = dict.fromkeys(NotificationKind)
        self._handles: dict[NotificationKind, NotificationHandle] = dict.fromkeys(
            NotificationKind, INVALID_HANDLE
        )

        if event_bus is not None:
            event_bus.subscribe(SelectionChangedEvent, self._on_selection_changed)

    @property
    def preferences(self) -> NotificationPreferences:
        return self._preferences

    @property
    def language(self) -> str:
        return self._language

    @property
    def permission_granted(self) -> bool:
        return self._permission_granted

    def handle_for(self, kind: NotificationKind) -> NotificationHandle:
        return self._handles[kind]

    async def request_permission(self) -> bool:
        """Ask the sink for permission."""
        if not self._sink.is_supported():
            logger.info("Notifications are not supported on this system")
            self._permission_granted = False
            return False

        self._permission_granted = await self._sink.request_permission()
        self._resync()
        return self._permission_granted

    async def enable(self) -> None:
        """
        Switch notifications on.

        Raises:
            PermissionDenied: The sink refused permission.
        """
        if not self._permission_granted and not await self.request_permission():
            raise PermissionDenied("Notification permission was not granted")
        self.update_preferences(replace(self._preferences, enabled=True))

    def update_preferences(self, preferences: NotificationPreferences) -> None:
        self._preferences = preferences
        self._resync()

    def set_language(self, language: str) -> None:
        self._language = language
        self._resync()

    def sync(self, sehri_time: datetime | None, iftar_time: datetime | None) -> None:
        """Re-arm notifications for new target times."""
        self._targets[NotificationKind.SEHRI] = sehri_time
        self._targets[NotificationKind.IFTAR] = iftar_time
        self._resync()

    def _resync(self) -> None:
        for kind in NotificationKind:
            self._sync_kind(kind)

    def _sync_kind(self, kind: NotificationKind) -> None:
        target = self._targets[kind]
        inputs = (
            self._preferences.enabled,
            self._preferences.is_kind_enabled(kind),
            self._preferences.lead_minutes,
            self._language,
            self._permission_granted,
            target,
        )
        if inputs == self._inputs[kind]:
            return
        self._inputs[kind] = inputs

        self._scheduler.cancel(self._handles[kind])
        self._handles[kind] = INVALID_HANDLE

        if target is None or not self._permission_granted:
            return
        if not self._preferences.is_kind_enabled(kind):
            return

        self._handles[kind] = self._scheduler.schedule(
            target, self._preferences.lead_minutes, kind, self._language
        )

    def _on_selection_changed(self, event: DomainEvent) -> None:
        assert isinstance(event, SelectionChangedEvent)
        active = event.selection.active
        if active is None:
            self.sync(None, None)
        else:
            self.sync(active.sehri_time, active.iftar_time)

    def shutdown(self) -> None:
        """Cancel every armed notification."""
        self._scheduler.cancel_all()
        for kind in NotificationKind:
            self._handles[kind] = INVALID_HANDLE
            self._inputs[kind] = None
