"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from .models import Booking, BookingReminder
from .notifications import EVENT_SUBJECTS, REMINDER_SUBJECTS, event_intro, reminder_intro, send_booking_email
from .services import list_overdue

logger = logging.getLogger(__name__)


def _send_reminder(booking: Booking, kind: str) -> bool:
    """Email one reminder unless this kind was already sent today."""
    now = timezone.now()
    if BookingReminder.objects.filter(booking=booking, kind=kind, sent_on=timezone.localdate(now)).exists():
        return False

    # The row is claimed before mailing; a failed send rolls the claim back
    try:
        with transaction.atomic():
            BookingReminder.objects.create(booking=booking, kind=kind, sent_to=booking.user.email, sent_at=now)
            send_booking_email(booking, REMINDER_SUBJECTS[kind], reminder_intro(kind, booking))
    except IntegrityError:
        # a concurrent run recorded the same reminder
        logger.warning(f"Duplicate {kind} reminder for booking {booking.pk}")
        return False
    return True


def _send_reminders(bookings, kind: str) -> dict[str, int]:
    sent = 0
    failed = 0
    for booking in bookings:
        try:
            if _send_reminder(booking, kind):
                sent += 1
        except Exception as e:
            failed += 1
            logger.error(f"Error sending {kind} reminder for booking {booking.pk}: {e}", exc_info=True)

    if sent or failed:
        logger.info(f"Sent {sent} {kind} reminders, {failed} failed")
    return {"sent": sent, "failed": failed}


# ============================================================================
# PERIODIC TASKS (scheduled through Celery Beat)
# ============================================================================

@shared_task(name="bookings.send_return_reminders")
def send_return_reminders() -> dict[str, int]:
    """
    Remind renters whose active rentals end soon.

    Picks active bookings ending within RENTAL_REMINDER_DAYS_BEFORE_END
    days (excluding today, which is already overdue territory).

    Returns:
        dict: {"sent": reminders emailed, "failed": errors}
    """
    today = timezone.localdate()
    horizon = today + timedelta(days=settings.RENTAL_REMINDER_DAYS_BEFORE_END)
    bookings = Booking.objects.filter(
        status=Booking.Status.ACTIVE,
        end_date__gt=today,
        end_date__lte=horizon,
    ).select_related("equipment", "user")
    return _send_reminders(bookings, BookingReminder.Kind.RETURN)


@shared_task(name="bookings.send_overdue_reminders")
def send_overdue_reminders() -> dict[str, int]:
    """
    Remind renters whose active rentals are past their end date.

    Returns:
        dict: {"sent": reminders emailed, "failed": errors}
    """
    return _send_reminders(list_overdue(), BookingReminder.Kind.OVERDUE)


@shared_task(name="bookings.send_checkout_reminders")
def send_checkout_reminders() -> dict[str, int]:
    """
    Remind renters of approved bookings that start tomorrow.

    Returns:
        dict: {"sent": reminders emailed, "failed": errors}
    """
    tomorrow = timezone.localdate() + timedelta(days=1)
    bookings = Booking.objects.filter(
        status=Booking.Status.APPROVED,
        start_date=tomorrow,
    ).select_related("equipment", "user")
    return _send_reminders(bookings, BookingReminder.Kind.CHECKOUT)


# ============================================================================
# EVENT NOTIFICATIONS
# ============================================================================

@shared_task(name="bookings.notify_booking_event")
def notify_booking_event(event_name: str, booking_id: int) -> dict[str, int]:
    """Email the renter about a lifecycle event."""
    if event_name not in EVENT_SUBJECTS:
        logger.warning(f"No notification defined for event {event_name}")
        return {"sent": 0}

    try:
        booking = Booking.objects.select_related("equipment", "user").get(pk=booking_id)
    except Booking.DoesNotExist:
        logger.warning(f"Booking {booking_id} disappeared before {event_name} notification")
        return {"sent": 0}

    send_booking_email(booking, EVENT_SUBJECTS[event_name], event_intro(event_name, booking))
    return {"sent": 1}
