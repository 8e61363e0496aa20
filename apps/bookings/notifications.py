"""Email notifications for renters."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore

from .models import Booking, BookingReminder

logger = logging.getLogger(__name__)

EVENT_SUBJECTS = {
    "BookingCreated": "Booking request received",
    "BookingApproved": "Your booking was approved",
    "BookingCheckedOut": "Equipment checked out",
    "BookingCheckedIn": "Equipment returned, thank you",
    "BookingCancelled": "Your booking was cancelled",
}

REMINDER_SUBJECTS = {
    BookingReminder.Kind.CHECKOUT: "Your rental starts soon",
    BookingReminder.Kind.RETURN: "Equipment due back soon",
    BookingReminder.Kind.OVERDUE: "Equipment is overdue",
}


def _booking_summary(booking: Booking) -> str:
    return (
        f"{booking.equipment.full_name}\n"
        f"From {booking.start_date:%Y-%m-%d} until {booking.end_date:%Y-%m-%d}\n"
        f"Status: {booking.get_status_display()}\n"
        f"Total cost: {booking.total_cost}"
    )


def send_booking_email(booking: Booking, subject: str, intro: str) -> None:
    """Send a plain-text email about ``booking`` to its renter."""
    send_mail(
        subject=f"[Rental #{booking.pk}] {subject}",
        message=f"{intro}\n\n{_booking_summary(booking)}",
        from_email=settings.RENTAL_REMINDER_FROM_EMAIL,
        recipient_list=[booking.user.email],
        fail_silently=False,
    )
    logger.info(f"Email '{subject}' sent to {booking.user.email} for booking {booking.pk}")


def event_intro(event_name: str, booking: Booking) -> str:
    if event_name == "BookingCancelled" and booking.cancellation_reason:
        return f"The booking was cancelled: {booking.cancellation_reason}"
    if event_name == "BookingCheckedIn" and booking.has_damage:
        return "The equipment was returned with a damage report attached."
    return EVENT_SUBJECTS.get(event_name, "Booking update") + "."


def reminder_intro(kind: str, booking: Booking) -> str:
    if kind == BookingReminder.Kind.OVERDUE:
        return (
            f"The rental ended on {booking.end_date:%Y-%m-%d} and is "
            f"{booking.days_overdue} day(s) overdue. Please return the equipment."
        )
    if kind == BookingReminder.Kind.RETURN:
        return f"Please return the equipment by {booking.end_date:%Y-%m-%d}."
    return f"Your rental starts on {booking.start_date:%Y-%m-%d}."
