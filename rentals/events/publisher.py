"""Event publisher - hands committed domain events to notification handlers."""

from datetime import datetime
import logging
from typing import Any, Callable, Dict, List, Protocol

logger = logging.getLogger(__name__)


class Event(Protocol):
    """Protocol for event types."""

    def to_dict(self) -> Dict[str, Any]:
        ...


Handler = Callable[[str, Dict[str, Any]], None]


class EventPublisher:
    """
    Publishes domain events to registered handlers.

    Publishing happens after commit. Delivery is fire-and-forget: a failing
    handler is logged and never affects the booking that produced the event.
    """

    def __init__(self, handlers: List[Handler] | None = None):
        self._handlers: List[Handler] = list(handlers or [])

    def subscribe(self, handler: Handler) -> None:
        self._handlers.append(handler)

    def publish(self, event: Event) -> None:
        event_type = type(event).__name__
        payload = event.to_dict()

        # Convert datetime objects to ISO strings so handlers get JSON-ready payloads
        for key, value in payload.items():
            if isinstance(value, datetime):
                payload[key] = value.isoformat()

        logger.info(f"Publishing event {event_type}", extra={"event_type": event_type, **payload})
        for handler in self._handlers:
            try:
                handler(event_type, dict(payload))
            except Exception as exc:
                logger.error(
                    f"Event handler failed for {event_type}: {exc}",
                    extra={"event_type": event_type},
                    exc_info=True,
                )


_default_publisher = EventPublisher()


def get_event_publisher() -> EventPublisher:
    return _default_publisher
