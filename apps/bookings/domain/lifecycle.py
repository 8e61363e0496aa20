r"""
Booking Lifecycle

The status transition table and the overdue rules. Statuses are plain
strings so the rules can be checked without touching the database.

    pending --approve--> approved --check_out--> active --check_in--> completed
       \________________________\____________________\--cancel--> cancelled
"""

import math
from datetime import date, datetime, time, timedelta

from django.utils import timezone

from shared.domain.exceptions import InvalidTransitionError

PENDING = 'pending'
APPROVED = 'approved'
ACTIVE = 'active'
COMPLETED = 'completed'
CANCELLED = 'cancelled'

TERMINAL_STATUSES = frozenset({COMPLETED, CANCELLED})

# Bookings in these states hold the equipment for their dates
BLOCKING_STATUSES = (PENDING, APPROVED, ACTIVE)

APPROVE = 'approve'
CANCEL = 'cancel'
CHECK_OUT = 'check_out'
CHECK_IN = 'check_in'

TRANSITIONS: dict[str, tuple[frozenset, str]] = {
    APPROVE: (frozenset({PENDING}), APPROVED),
    CANCEL: (frozenset({PENDING, APPROVED, ACTIVE}), CANCELLED),
    CHECK_OUT: (frozenset({APPROVED}), ACTIVE),
    CHECK_IN: (frozenset({ACTIVE}), COMPLETED),
}

ONE_DAY = timedelta(days=1)


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def next_status(current: str, event: str) -> str:
    """
    Target status of ``event`` applied in ``current``.

    Raises InvalidTransitionError for terminal bookings and for events
    the current status does not accept.
    """
    if event not in TRANSITIONS:
        raise InvalidTransitionError(f"Unknown booking event '{event}'", event=event)
    if is_terminal(current):
        raise InvalidTransitionError(
            f"Booking is {current} and can no longer be changed",
            status=current,
            event=event,
        )
    allowed_from, target = TRANSITIONS[event]
    if current not in allowed_from:
        raise InvalidTransitionError(
            f"Cannot {event.replace('_', ' ')} a booking that is {current}",
            status=current,
            event=event,
        )
    return target


def due_at(end_date: date) -> datetime:
    """Start of the end date in the configured time zone."""
    return timezone.make_aware(datetime.combine(end_date, time.min), timezone.get_current_timezone())


def is_overdue(status: str, end_date: date, now: datetime | None = None) -> bool:
    if status != ACTIVE or end_date is None:
        return False
    now = now or timezone.now()
    return due_at(end_date) < now


def days_overdue(status: str, end_date: date, now: datetime | None = None) -> int:
    """Days past the end date, partial days rounded up; 0 when not overdue."""
    now = now or timezone.now()
    if not is_overdue(status, end_date, now):
        return 0
    return math.ceil((now - due_at(end_date)) / ONE_DAY)


def overdue_cutoff(now: datetime | None = None) -> date:
    """Latest end date that counts as overdue at ``now``."""
    now = now or timezone.now()
    today = timezone.localdate(now)
    if due_at(today) < now:
        return today
    return today - ONE_DAY
