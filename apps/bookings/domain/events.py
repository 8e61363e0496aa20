"""
Booking Domain Events

Events that represent things that have happened to a rental booking.
They are recorded in the unit of work and published after the
transaction commits.
"""

from dataclasses import dataclass

from shared.domain.base import DomainEvent


@dataclass
class BookingEvent(DomainEvent):
    """Fields shared by every booking event. ``aggregate_id`` is the booking id."""
    equipment_id: int | None = None
    user_id: int | None = None
    actor_id: int | None = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            equipment_id=self.equipment_id,
            user_id=self.user_id,
            actor_id=self.actor_id,
        )
        return data


@dataclass
class BookingCreated(BookingEvent):
    """
    Event: A booking request was created (pending)

    Triggers:
    - Notify rental desk staff
    """
    start_date: str = ''
    end_date: str = ''


@dataclass
class BookingApproved(BookingEvent):
    """
    Event: Staff approved the booking (pending -> approved)

    Triggers:
    - Email the renter
    """


@dataclass
class BookingCheckedOut(BookingEvent):
    """Event: Equipment left the warehouse (approved -> active)"""
    condition: str = ''


@dataclass
class BookingCheckedIn(BookingEvent):
    """Event: Equipment came back (active -> completed)"""
    condition: str = ''


@dataclass
class BookingCancelled(BookingEvent):
    """
    Event: Booking was cancelled from a non-terminal state

    Triggers:
    - Email the renter with the reason
    """
    reason: str = ''
