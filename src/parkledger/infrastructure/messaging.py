# File: src/parkledger/infrastructure/messaging.py
"""
Messaging Infrastructure for the Parking Stay Ledger

In-process publish/subscribe for stay events. The ledger returns the
affected Stay from every mutation; the event bus lets a presentation layer
decide on its own whether and when to re-query.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Callable
from enum import Enum
import logging
import threading

from ..domain.models import DomainEvent


class EventType(str, Enum):
    """Domain event types"""
    STAY_OPENED = "stay.opened"
    STAY_CLOSED = "stay.closed"


# ============================================================================
# EVENT HANDLERS
# ============================================================================

class EventHandler(ABC):
    """Abstract base class for event handlers"""

    @abstractmethod
    def handle(self, event: DomainEvent) -> None:
        """Handle a domain event"""
        pass

    def can_handle(self, event: DomainEvent) -> bool:
        """Check if this handler can handle the event"""
        return True


class CallbackEventHandler(EventHandler):
    """Adapts a plain callable to the EventHandler interface"""

    def __init__(self, callback: Callable[[DomainEvent], None]):
        self.callback = callback

    def handle(self, event: DomainEvent) -> None:
        self.callback(event)


# ============================================================================
# EVENT BUS (In-memory)
# ============================================================================

class EventBus:
    """
    In-memory event bus for intra-process event publishing

    Handler failures are logged and do not reach the publisher: a broken
    view must not undo a checkout that already happened.
    """

    def __init__(self):
        self._subscribers: Dict[EventType, List[EventHandler]] = {}
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to events of a specific type"""
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                self._logger.debug(f"Subscribed {handler.__class__.__name__} to {event_type.value}")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe handler from events"""
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
                self._logger.debug(f"Unsubscribed {handler.__class__.__name__} from {event_type.value}")

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers"""
        self._logger.info(f"Publishing event: {event.event_type} (ID: {event.event_id})")

        with self._lock:
            handlers = list(self._subscribers.get(EventType(event.event_type), []))

        for handler in handlers:
            if handler.can_handle(event):
                try:
                    handler.handle(event)
                    self._logger.debug(f"Event handled by {handler.__class__.__name__}")
                except Exception as e:
                    self._logger.error(
                        f"Error handling event {event.event_type} with {handler.__class__.__name__}: {e}",
                        exc_info=True
                    )

    def publish_all(self, events: List[DomainEvent]) -> None:
        for event in events:
            self.publish(event)

    def clear_subscribers(self) -> None:
        """Clear all subscribers (for testing)"""
        with self._lock:
            self._subscribers.clear()
