# File: src/tierpark/infrastructure/messaging.py
"""
In-process messaging for parking domain events

Implements the publish/subscribe pattern within the same process so the
application layer can react to vehicles arriving and leaving without the
core knowing who listens. Handlers run on the publishing thread, after the
lot lock has been released.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Union
import logging
import threading

from ..domain.models import DomainEvent


# ============================================================================
# EVENT HANDLERS
# ============================================================================

class EventHandler(ABC):
    """Abstract base class for event handlers"""

    @abstractmethod
    def handle(self, event: DomainEvent) -> None:
        """Handle a domain event"""

    def can_handle(self, event: DomainEvent) -> bool:
        """Check if this handler can handle the event"""
        return True


class LoggingEventHandler(EventHandler):
    """Writes every event it receives to the log at INFO"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("tierpark.events")

    def handle(self, event: DomainEvent) -> None:
        data = event.to_dict()["data"]
        self._logger.info(
            f"{event.event_type}: {data['vehicle']['license_plate']} "
            f"floor={data['location']['floor_id']} spots={data['location']['spot_indices']}"
        )


class _CallbackHandler(EventHandler):
    def __init__(self, callback: Callable[[DomainEvent], None]):
        self.callback = callback

    def handle(self, event: DomainEvent) -> None:
        self.callback(event)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _CallbackHandler) and other.callback == self.callback

    def __hash__(self) -> int:
        return hash(self.callback)


Handler = Union[EventHandler, Callable[[DomainEvent], None]]


# ============================================================================
# EVENT BUS (In-memory)
# ============================================================================

class EventBus:
    """
    In-memory event bus for intra-process event publishing

    Subscriptions are keyed by event type ("vehicle.parked",
    "vehicle.removed") or "*" for every event. Subscribe and publish may be
    called from any thread.
    """

    WILDCARD = "*"

    def __init__(self):
        self._subscribers: Dict[str, List[EventHandler]] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, event_type: str, handler: Handler) -> None:
        """Subscribe to events of a specific type"""
        handler = self._wrap(handler)
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
        self._logger.debug(f"Subscribed {handler.__class__.__name__} to {event_type}")

    def unsubscribe(self, event_type: str, handler: Handler) -> bool:
        """Unsubscribe handler from events; returns False if it was not subscribed"""
        handler = self._wrap(handler)
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler not in handlers:
                return False
            handlers.remove(handler)
        self._logger.debug(f"Unsubscribed {handler.__class__.__name__} from {event_type}")
        return True

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers"""
        with self._lock:
            handlers = (
                list(self._subscribers.get(event.event_type, []))
                + list(self._subscribers.get(self.WILDCARD, []))
            )

        self._logger.debug(f"Publishing event: {event.event_type} (ID: {event.event_id})")
        for handler in handlers:
            if not handler.can_handle(event):
                continue
            try:
                handler.handle(event)
            except Exception as e:
                self._logger.error(
                    f"Error handling event {event.event_type} with "
                    f"{handler.__class__.__name__}: {e}",
                    exc_info=True,
                )

    def publish_all(self, events: List[DomainEvent]) -> None:
        for event in events:
            self.publish(event)

    def clear_subscribers(self) -> None:
        """Clear all subscribers (for testing)"""
        with self._lock:
            self._subscribers.clear()

    @staticmethod
    def _wrap(handler: Handler) -> EventHandler:
        if isinstance(handler, EventHandler):
            return handler
        if callable(handler):
            return _CallbackHandler(handler)
        raise TypeError(f"Handler must be an EventHandler or callable, got {handler!r}")
