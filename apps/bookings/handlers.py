"""
Booking event handlers

Subscribed to the message bus in ``BookingsConfig.ready()``. They run
after the booking transaction has committed.
"""

import structlog

from shared.application.message_bus import MessageBus, message_bus

from .domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingCheckedIn,
    BookingCheckedOut,
    BookingCreated,
    BookingEvent,
)

logger = structlog.get_logger(__name__)

BOOKING_EVENTS = (
    BookingCreated,
    BookingApproved,
    BookingCheckedOut,
    BookingCheckedIn,
    BookingCancelled,
)


def audit_booking_event(event: BookingEvent) -> None:
    logger.info("booking.event", **event.to_dict())


def enqueue_booking_notification(event: BookingEvent) -> None:
    from .tasks import notify_booking_event

    notify_booking_event.delay(event.name, event.aggregate_id)


def register_handlers(bus: MessageBus = message_bus) -> None:
    for event_type in BOOKING_EVENTS:
        bus.register_event_handler(event_type, audit_booking_event)
        bus.register_event_handler(event_type, enqueue_booking_notification)
