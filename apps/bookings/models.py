"""Booking domain models for the equipment rental service."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models, transaction  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.exceptions import ValidationError as DomainValidationError
from shared.domain.value_objects import DateRange, RentalRates

from .domain import lifecycle
from .domain.pricing import calculate_total_cost, rental_days

NON_NEGATIVE = [MinValueValidator(Decimal("0"))]


class Booking(models.Model):
    """A rental of one equipment item over a half-open date range."""

    class Status(models.TextChoices):
        PENDING = lifecycle.PENDING, _("Pending")
        APPROVED = lifecycle.APPROVED, _("Approved")
        ACTIVE = lifecycle.ACTIVE, _("Active")
        COMPLETED = lifecycle.COMPLETED, _("Completed")
        CANCELLED = lifecycle.CANCELLED, _("Cancelled")

    class Condition(models.TextChoices):
        EXCELLENT = "excellent", _("Excellent")
        GOOD = "good", _("Good")
        FAIR = "fair", _("Fair")
        POOR = "poor", _("Poor")

    equipment = models.ForeignKey(
        "equipment.Equipment",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    start_date = models.DateField()
    end_date = models.DateField(help_text=_("Exclusive: the equipment is free again on this day."))
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )

    daily_rate = models.DecimalField(max_digits=10, decimal_places=2, validators=NON_NEGATIVE)
    weekly_rate = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=NON_NEGATIVE
    )
    monthly_rate = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=NON_NEGATIVE
    )
    total_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
        help_text=_("Derived from dates and rates on every save."),
    )

    purpose = models.CharField(max_length=500, blank=True)
    project = models.CharField(max_length=200, blank=True)
    location_note = models.CharField(max_length=200, blank=True)
    notes = models.TextField(max_length=1000, blank=True)

    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_bookings",
    )
    approved_at = models.DateTimeField(null=True, blank=True)

    checked_out_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="checked_out_bookings",
    )
    check_out_date = models.DateTimeField(null=True, blank=True)
    check_out_condition = models.CharField(
        max_length=20,
        choices=Condition.choices,
        default=Condition.GOOD,
    )
    checked_in_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="checked_in_bookings",
    )
    check_in_date = models.DateTimeField(null=True, blank=True)
    check_in_condition = models.CharField(max_length=20, choices=Condition.choices, blank=True)

    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="cancelled_bookings",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=500, blank=True)

    deposit = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00"), validators=NON_NEGATIVE
    )
    deposit_returned = models.BooleanField(default=False)
    deposit_return_date = models.DateTimeField(null=True, blank=True)

    has_damage = models.BooleanField(default=False)
    damage_description = models.TextField(max_length=1000, blank=True)
    repair_cost = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00"), validators=NON_NEGATIVE
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="booking_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["equipment", "start_date", "end_date"], name="booking_equipment_dates_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
            models.Index(fields=["user"], name="booking_user_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.pk} of equipment {self.equipment_id} ({self.start_date} - {self.end_date})"

    @property
    def period(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    @property
    def rates(self) -> RentalRates:
        return RentalRates(daily=self.daily_rate, weekly=self.weekly_rate, monthly=self.monthly_rate)

    def calculate_total_cost(self) -> Decimal:
        return calculate_total_cost(self.period, self.rates)

    def clean(self) -> None:
        try:
            self.total_cost = self.calculate_total_cost()
        except DomainValidationError as exc:
            raise ValidationError(exc.message)

    def save(self, *args, **kwargs):  # type: ignore
        with transaction.atomic():
            self.clean()
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "total_cost" not in update_fields:
                kwargs["update_fields"] = [*update_fields, "total_cost"]
            super().save(*args, **kwargs)

    # --- Derived reads ------------------------------------------------------
    @property
    def duration(self) -> int:
        if not self.start_date or not self.end_date:
            return 0
        return rental_days(self.start_date, self.end_date)

    @property
    def is_terminal(self) -> bool:
        return lifecycle.is_terminal(self.status)

    @property
    def is_overdue(self) -> bool:
        return lifecycle.is_overdue(self.status, self.end_date)

    @property
    def days_overdue(self) -> int:
        return lifecycle.days_overdue(self.status, self.end_date)

    def overdue_at(self, now: datetime) -> int:
        """Days overdue as of ``now``."""
        return lifecycle.days_overdue(self.status, self.end_date, now)


class BookingReminder(models.Model):
    """A reminder email sent for a booking; at most one per kind per day."""

    class Kind(models.TextChoices):
        CHECKOUT = "checkout", _("Checkout")
        RETURN = "return", _("Return")
        OVERDUE = "overdue", _("Overdue")

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="reminders")
    kind = models.CharField(max_length=20, choices=Kind.choices)
    sent_to = models.EmailField()
    sent_at = models.DateTimeField(default=timezone.now)
    sent_on = models.DateField(editable=False)

    class Meta:
        ordering = ["-sent_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["booking", "kind", "sent_on"],
                name="booking_reminder_once_per_day",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_kind_display()} reminder for booking #{self.booking_id}"

    def save(self, *args, **kwargs):  # type: ignore
        self.sent_on = timezone.localdate(self.sent_at)
        super().save(*args, **kwargs)
