"""Service layer interfaces (ports)."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ramadan_timer.domain.events import DomainEvent
from ramadan_timer.domain.models import AppSettings, Location, PermissionState

JobCallback = Callable[[], Awaitable[None] | None]

# Persisted state keys
KEY_LOCATION = "user_location"
KEY_LOCATION_PERMISSION = "location_permission_granted"
KEY_PERMISSION_STATE = "permission_state"
KEY_LANGUAGE = "language"
KEY_CALCULATION_METHOD = "calculation_method"
KEY_HIJRI_ADJUSTMENT = "hijri_adjustment"
KEY_NOTIFICATIONS_ENABLED = "notifications_enabled"
KEY_SEHRI_NOTIFICATION = "sehri_notification_enabled"
KEY_IFTAR_NOTIFICATION = "iftar_notification_enabled"
KEY_NOTIFICATION_TIME = "notification_time"


@dataclass(frozen=True)
class GeolocationOptions:
    """Position query options."""

    enable_high_accuracy: bool = True
    timeout: float = 10.0
    maximum_age: float = 300.0


@dataclass(frozen=True)
class NotificationMessage:
    """A local notification ready for delivery."""

    title: str
    body: str
    tag: str
    # Image file; empty means the sink default
    icon: str = ""
    # Milliseconds, alternating pause and vibration
    vibrate: tuple[int, ...] = field(default=(100, 50, 100))


class KeyValueStorePort(ABC):
    """Persisted key/value state."""

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """Read a value."""

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Write a value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a value if present."""


class SettingsRepositoryPort(ABC):
    """Settings persistence."""

    @abstractmethod
    async def load(self) -> AppSettings:
        """Load settings."""

    @abstractmethod
    async def save(self, settings: AppSettings) -> None:
        """Save settings."""


class SchedulerPort(ABC):
    """Timer scheduling."""

    @abstractmethod
    def schedule_at(self, run_time: datetime, callback: JobCallback, job_id: str) -> None:
        """Run callback once at run_time."""

    @abstractmethod
    def schedule_interval(self, seconds: float, callback: JobCallback, job_id: str) -> None:
        """Run callback every `seconds`."""

    @abstractmethod
    def cancel(self, job_id: str) -> bool:
        """Cancel a job; False if it was not scheduled."""

    @abstractmethod
    def get_scheduled_jobs(self) -> list[tuple[str, datetime]]:
        """List (job_id, next run time)."""


class EventBusPort(ABC):
    """Event bus."""

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """Publish an event."""

    @abstractmethod
    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: Callable[[DomainEvent], None],
    ) -> None:
        """Subscribe to an event type."""


class GeolocationPort(ABC):
    """Position provider."""

    @abstractmethod
    async def permission_state(self) -> PermissionState:
        """Current permission state."""

    @abstractmethod
    async def current_position(self, options: GeolocationOptions) -> Location:
        """
        One-shot position query.

        Raises:
            PermissionDenied, LocationTimeout, LocationUnavailable
        """


class NotificationSinkPort(ABC):
    """Local notification delivery."""

    @abstractmethod
    def is_supported(self) -> bool:
        """Can this sink deliver at all?"""

    @abstractmethod
    async def request_permission(self) -> bool:
        """Ask for permission to notify."""

    @abstractmethod
    def send(self, message: NotificationMessage) -> bool:
        """Deliver a notification, replacing any earlier one with the same tag."""
