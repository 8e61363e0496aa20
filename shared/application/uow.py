"""
Unit of Work

Wraps ``transaction.atomic()`` and collects the domain events raised
inside it. Events reach the message bus only after the outermost
transaction commits; a rollback drops them.
"""

from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    Transaction plus pending booking events

    Usage:
        with DjangoUnitOfWork() as uow:
            equipment = lock_equipment(equipment_id)
            booking.status = Booking.Status.APPROVED
            booking.save()
            uow.record(BookingApproved(aggregate_id=booking.pk, ...))
        # BookingApproved is published after commit
    """

    def __init__(self):
        self._events: List[DomainEvent] = []
        self._atomic = transaction.atomic()

    def __enter__(self):
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publish()
            elif self._events:
                logger.warning(f"Transaction failed, dropping {len(self._events)} booking events")
        finally:
            self._events = []
            self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def record(self, event: DomainEvent):
        self._events.append(event)

    def _schedule_publish(self):
        events = list(self._events)
        if events:
            logger.debug(f"Publishing {len(events)} events once the transaction commits")
            transaction.on_commit(lambda: _publish(events))


def _publish(events: List[DomainEvent]):
    from shared.application.message_bus import message_bus

    message_bus.publish_events(events)
