"""Domain events for event-driven architecture."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from ramadan_timer.domain.models import DayRecord, NotificationKind, SelectionState


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True, kw_only=True)
class SelectionChangedEvent(DomainEvent):
    """The active day or the next-day flag changed."""

    selection: SelectionState


@dataclass(frozen=True, kw_only=True)
class CacheUpdatedEvent(DomainEvent):
    """Records were written to the day cache."""

    records: tuple[DayRecord, ...]


@dataclass(frozen=True, kw_only=True)
class NotificationSentEvent(DomainEvent):
    """A scheduled notification fired."""

    kind: NotificationKind
    title: str
    delivered: bool


@dataclass(frozen=True, kw_only=True)
class SettingsChangedEvent(DomainEvent):
    """Persisted settings changed."""

    changed_fields: tuple[str, ...]
