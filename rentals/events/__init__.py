from .booking_events import BookingCancelled, BookingCreated, CreditsGranted
from .publisher import EventPublisher, get_event_publisher

__all__ = [
    "BookingCancelled",
    "BookingCreated",
    "CreditsGranted",
    "EventPublisher",
    "get_event_publisher",
]
