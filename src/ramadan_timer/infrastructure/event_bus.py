"""In-memory event bus implementation."""

import logging
from collections import defaultdict
from collections.abc import Callable

from ramadan_timer.domain.events import DomainEvent
from ramadan_timer.services.ports import EventBusPort

logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBusPort):
    """Synchronous in-process event bus."""

    def __init__(self) -> None:
        """Initialize event bus."""
        self._handlers: dict[type[DomainEvent], list[Callable[[DomainEvent], None]]] = defaultdict(
            list
        )

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to every handler of its exact type."""
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        logger.debug(f"Event published: {event_type.__name__} ({len(handlers)} handlers)")

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler error for {event_type.__name__}: {e}")

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: Callable[[DomainEvent], None],
    ) -> None:
        """Subscribe to an event type."""
        self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed to {event_type.__name__}")

