"""Domain services for booking workflows.

Every function takes plain data (ids, dates, amounts), returns model
instances or plain dicts, and reports failure with the errors from
``shared.domain.exceptions``. Nothing here knows about HTTP.

Creation, approval and date changes lock the equipment row before the
conflict query, so two requests for the same item are serialized.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog
from django.contrib.auth import get_user_model  # type: ignore
from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Count, Q, Sum  # type: ignore
from django.db.models.functions import TruncMonth  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from apps.equipment.models import Equipment
from apps.equipment.services import get_equipment, lock_equipment
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from shared.domain.value_objects import DateRange, RentalRates

from .domain import lifecycle
from .domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingCheckedIn,
    BookingCheckedOut,
    BookingCreated,
)
from .models import Booking

logger = structlog.get_logger(__name__)

User = get_user_model()

CSV_COLUMNS = ["id", "equipment", "user", "start_date", "end_date", "status", "purpose", "total_cost", "notes"]


# --- helpers ----------------------------------------------------------------

def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _get_user(user_id):
    if user_id is None:
        raise ValidationError("User is required", field="user")
    try:
        return User.objects.get(pk=user_id)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"User {user_id} not found", user_id=user_id)


def get_booking(booking_id: int) -> Booking:
    try:
        return Booking.objects.select_related("equipment", "user").get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Booking {booking_id} not found", booking_id=booking_id)


def _lock_booking(booking_id: int) -> tuple[Booking, Equipment]:
    """Lock the booking's equipment, then the booking itself."""
    equipment_id = Booking.objects.filter(pk=booking_id).values_list("equipment_id", flat=True).first()
    if equipment_id is None:
        raise NotFoundError(f"Booking {booking_id} not found", booking_id=booking_id)
    equipment = lock_equipment(equipment_id)
    booking = _lock_queryset_if_possible(Booking.objects.select_related("user")).get(pk=booking_id)
    booking.equipment = equipment
    return booking, equipment


def _coerce_rates(rates) -> RentalRates:
    if isinstance(rates, RentalRates):
        return rates
    if isinstance(rates, Mapping):
        return RentalRates.from_mapping(dict(rates))
    raise ValidationError("Rental rates must be a mapping of daily, weekly and monthly", field="rates")


def _resolve_rates(rates, defaults: RentalRates) -> RentalRates:
    """Caller-supplied rates, with missing entries taken from ``defaults``."""
    if rates is None:
        return defaults
    if isinstance(rates, Mapping):
        rates = {
            "daily": rates.get("daily", defaults.daily),
            "weekly": rates.get("weekly", defaults.weekly),
            "monthly": rates.get("monthly", defaults.monthly),
        }
    return _coerce_rates(rates)


def _non_negative_amount(value, field_name: str) -> Decimal:
    try:
        amount = Decimal(str(value if value not in (None, "") else 0))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return amount


def _save(booking: Booking, **kwargs) -> None:
    try:
        booking.full_clean(exclude=["equipment", "user", "total_cost"])
        booking.save(**kwargs)
    except DjangoValidationError as exc:
        raise ValidationError("; ".join(exc.messages), booking_id=booking.pk)


def _ensure_no_conflict(equipment_id: int, period: DateRange, *, exclude_booking_id=None) -> None:
    conflicts = find_conflicts(
        equipment_id,
        period.start_date,
        period.end_date,
        exclude_booking_id=exclude_booking_id,
    )
    if conflicts:
        conflict_ids = [booking.pk for booking in conflicts]
        logger.info(
            "booking.conflict",
            equipment_id=equipment_id,
            start_date=str(period.start_date),
            end_date=str(period.end_date),
            conflicts=conflict_ids,
        )
        raise ConflictError(
            f"Equipment is already booked for {period}",
            equipment_id=equipment_id,
            conflicts=conflict_ids,
        )


def _release_equipment(equipment: Equipment, booking: Booking, actor=None) -> bool:
    """Mark the equipment available unless something else still holds it.

    Only a ``checked-out`` flag is cleared; maintenance, damage and loss
    states set by staff are left alone.
    """
    if equipment.status != Equipment.Status.CHECKED_OUT:
        return False
    still_held = (
        Booking.objects.filter(
            equipment_id=equipment.pk,
            status__in=(Booking.Status.APPROVED, Booking.Status.ACTIVE),
        )
        .exclude(pk=booking.pk)
        .exists()
    )
    if still_held:
        return False
    equipment.status = Equipment.Status.AVAILABLE
    equipment.last_modified_by = actor
    equipment.save(update_fields=["status", "last_modified_by", "updated_at"])
    return True


def _get_actor(actor):
    """Accept a user or a user id; ``None`` means no recorded actor."""
    if actor is None or isinstance(actor, User):
        return actor
    try:
        return User.objects.get(pk=actor)
    except (User.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"User {actor} not found", user_id=actor)


def _actor_id(actor):
    return getattr(actor, "pk", actor)


# --- conflict resolver --------------------------------------------------------

def conflicts_queryset(equipment_id: int, start_date: date, end_date: date, *, exclude_booking_id=None):
    """Blocking bookings on the equipment that overlap [start_date, end_date)."""
    overlapping_filter = Q(start_date__lt=end_date) & Q(end_date__gt=start_date)
    qs = Booking.objects.filter(
        equipment_id=equipment_id,
        status__in=lifecycle.BLOCKING_STATUSES,
    ).filter(overlapping_filter)
    if exclude_booking_id is not None:
        qs = qs.exclude(pk=exclude_booking_id)
    return qs


def find_conflicts(equipment_id: int, start_date: date, end_date: date, exclude_booking_id=None) -> list[Booking]:
    period = DateRange(start_date, end_date)
    qs = conflicts_queryset(
        equipment_id,
        period.start_date,
        period.end_date,
        exclude_booking_id=exclude_booking_id,
    )
    return list(qs.select_related("user").order_by("start_date"))


def has_conflict(equipment_id: int, start_date: date, end_date: date, exclude_booking_id=None) -> bool:
    period = DateRange(start_date, end_date)
    return conflicts_queryset(
        equipment_id,
        period.start_date,
        period.end_date,
        exclude_booking_id=exclude_booking_id,
    ).exists()


def check_availability(equipment_id: int, start_date: date, end_date: date) -> dict[str, Any]:
    """Whether the equipment can be booked for the dates, and what is in the way."""
    equipment = get_equipment(equipment_id)
    conflicts = find_conflicts(equipment.pk, start_date, end_date)
    return {
        "available": not conflicts and equipment.is_available,
        "equipment": {
            "id": equipment.pk,
            "name": equipment.name,
            "full_name": equipment.full_name,
            "status": equipment.status,
        },
        "conflicts": [
            {
                "id": booking.pk,
                "start_date": booking.start_date,
                "end_date": booking.end_date,
                "status": booking.status,
            }
            for booking in conflicts
        ],
    }


# --- creation & update ---------------------------------------------------------

def create_booking(
    equipment_id: int,
    user_id: int,
    start_date: date,
    end_date: date,
    rates: RentalRates | Mapping | None = None,
    *,
    purpose: str = "",
    project: str = "",
    location_note: str = "",
    notes: str = "",
    deposit: Decimal | int | str = 0,
) -> Booking:
    """Create a pending booking.

    When ``rates`` is omitted the equipment's current rate card is
    snapshotted onto the booking.
    """
    if equipment_id is None:
        raise ValidationError("Equipment is required", field="equipment")
    period = DateRange(start_date, end_date)
    user = _get_user(user_id)
    deposit_amount = _non_negative_amount(deposit, "Deposit")

    with DjangoUnitOfWork() as uow:
        equipment = lock_equipment(equipment_id)
        if not equipment.is_active:
            raise ValidationError("Equipment is not active", equipment_id=equipment.pk)
        if equipment.is_out_of_service:
            raise ValidationError(
                f"Equipment is out of service ({equipment.status})",
                equipment_id=equipment.pk,
                status=equipment.status,
            )
        booking_rates = _resolve_rates(rates, equipment.rental_rates)

        _ensure_no_conflict(equipment.pk, period)

        booking = Booking(
            equipment=equipment,
            user=user,
            start_date=period.start_date,
            end_date=period.end_date,
            daily_rate=booking_rates.daily,
            weekly_rate=booking_rates.weekly,
            monthly_rate=booking_rates.monthly,
            purpose=purpose or "",
            project=project or "",
            location_note=location_note or "",
            notes=notes or "",
            deposit=deposit_amount,
        )
        _save(booking)
        uow.record(
            BookingCreated(
                aggregate_id=booking.pk,
                equipment_id=equipment.pk,
                user_id=user.pk,
                actor_id=user.pk,
                start_date=period.start_date.isoformat(),
                end_date=period.end_date.isoformat(),
            )
        )

    logger.info(
        "booking.created",
        booking_id=booking.pk,
        equipment_id=equipment.pk,
        user_id=user.pk,
        total_cost=str(booking.total_cost),
    )
    return booking


def update_booking(
    booking_id: int,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    rates: RentalRates | Mapping | None = None,
    purpose: str | None = None,
    project: str | None = None,
    location_note: str | None = None,
    notes: str | None = None,
) -> Booking:
    """Change dates, rates or descriptive fields of a non-terminal booking."""
    with transaction.atomic():
        booking, equipment = _lock_booking(booking_id)
        if booking.is_terminal:
            raise InvalidTransitionError(
                f"Booking is {booking.status} and can no longer be changed",
                booking_id=booking.pk,
                status=booking.status,
            )

        period = DateRange(start_date or booking.start_date, end_date or booking.end_date)
        if (period.start_date, period.end_date) != (booking.start_date, booking.end_date):
            _ensure_no_conflict(equipment.pk, period, exclude_booking_id=booking.pk)
            booking.start_date = period.start_date
            booking.end_date = period.end_date

        if rates is not None:
            booking_rates = _resolve_rates(rates, booking.rates)
            booking.daily_rate = booking_rates.daily
            booking.weekly_rate = booking_rates.weekly
            booking.monthly_rate = booking_rates.monthly

        for field_name, value in (
            ("purpose", purpose),
            ("project", project),
            ("location_note", location_note),
            ("notes", notes),
        ):
            if value is not None:
                setattr(booking, field_name, value)

        _save(booking)

    logger.info("booking.updated", booking_id=booking.pk, total_cost=str(booking.total_cost))
    return booking


# --- transitions ---------------------------------------------------------------

def approve(booking_id: int, actor) -> Booking:
    """pending -> approved; the equipment is marked checked out."""
    actor = _get_actor(actor)
    with DjangoUnitOfWork() as uow:
        booking, equipment = _lock_booking(booking_id)
        booking.status = lifecycle.next_status(booking.status, lifecycle.APPROVE)

        if equipment.is_out_of_service or not equipment.is_active:
            raise ValidationError(
                f"Equipment is not available for approval ({equipment.status})",
                equipment_id=equipment.pk,
            )
        # Re-check under the lock; the create-time check may be stale
        _ensure_no_conflict(equipment.pk, booking.period, exclude_booking_id=booking.pk)

        booking.approved_by = actor
        booking.approved_at = timezone.now()
        _save(booking)

        equipment.status = Equipment.Status.CHECKED_OUT
        equipment.last_modified_by = actor
        equipment.save(update_fields=["status", "last_modified_by", "updated_at"])

        uow.record(
            BookingApproved(
                aggregate_id=booking.pk,
                equipment_id=equipment.pk,
                user_id=booking.user_id,
                actor_id=_actor_id(actor),
            )
        )

    logger.info("booking.approved", booking_id=booking.pk, actor_id=_actor_id(actor))
    return booking


def cancel(booking_id: int, actor, reason: str = "") -> Booking:
    """Cancel from any non-terminal state, releasing the equipment if held."""
    actor = _get_actor(actor)
    with DjangoUnitOfWork() as uow:
        booking, equipment = _lock_booking(booking_id)
        previous = booking.status
        booking.status = lifecycle.next_status(previous, lifecycle.CANCEL)
        booking.cancelled_by = actor
        booking.cancelled_at = timezone.now()
        booking.cancellation_reason = reason or ""
        _save(booking)

        released = False
        if previous in (Booking.Status.APPROVED, Booking.Status.ACTIVE):
            released = _release_equipment(equipment, booking, actor)

        uow.record(
            BookingCancelled(
                aggregate_id=booking.pk,
                equipment_id=equipment.pk,
                user_id=booking.user_id,
                actor_id=_actor_id(actor),
                reason=booking.cancellation_reason,
            )
        )

    logger.info(
        "booking.cancelled",
        booking_id=booking.pk,
        previous=previous,
        equipment_released=released,
        actor_id=_actor_id(actor),
    )
    return booking


def _validate_condition(condition: str | None, *, required: bool) -> str:
    if not condition:
        if required:
            raise ValidationError("Equipment condition is required", field="condition")
        return Booking.Condition.GOOD
    if condition not in Booking.Condition.values:
        raise ValidationError(f"Unknown equipment condition '{condition}'", field="condition")
    return condition


def check_out(booking_id: int, actor, condition: str | None = None, *, notes: str = "") -> Booking:
    """approved -> active; the renter takes the equipment."""
    actor = _get_actor(actor)
    condition = _validate_condition(condition, required=False)
    with DjangoUnitOfWork() as uow:
        booking, equipment = _lock_booking(booking_id)
        booking.status = lifecycle.next_status(booking.status, lifecycle.CHECK_OUT)

        now = timezone.now()
        booking.checked_out_by = actor
        booking.check_out_date = now
        booking.check_out_condition = condition
        if notes:
            booking.notes = notes
        _save(booking)

        equipment.status = Equipment.Status.CHECKED_OUT
        equipment.last_checked_out = now
        equipment.total_rentals += 1
        equipment.last_modified_by = actor
        equipment.save(
            update_fields=["status", "last_checked_out", "total_rentals", "last_modified_by", "updated_at"]
        )

        uow.record(
            BookingCheckedOut(
                aggregate_id=booking.pk,
                equipment_id=equipment.pk,
                user_id=booking.user_id,
                actor_id=_actor_id(actor),
                condition=condition,
            )
        )

    logger.info("booking.checked_out", booking_id=booking.pk, condition=condition)
    return booking


def check_in(booking_id: int, actor, condition: str, *, notes: str = "") -> Booking:
    """active -> completed; the equipment returns to the shelf."""
    actor = _get_actor(actor)
    condition = _validate_condition(condition, required=True)
    with DjangoUnitOfWork() as uow:
        booking, equipment = _lock_booking(booking_id)
        booking.status = lifecycle.next_status(booking.status, lifecycle.CHECK_IN)

        now = timezone.now()
        booking.checked_in_by = actor
        booking.check_in_date = now
        booking.check_in_condition = condition
        if notes:
            booking.notes = notes
        _save(booking)

        _release_equipment(equipment, booking, actor)
        equipment.last_checked_in = now
        equipment.total_revenue += booking.total_cost
        equipment.save(update_fields=["last_checked_in", "total_revenue", "updated_at"])

        uow.record(
            BookingCheckedIn(
                aggregate_id=booking.pk,
                equipment_id=equipment.pk,
                user_id=booking.user_id,
                actor_id=_actor_id(actor),
                condition=condition,
            )
        )

    logger.info(
        "booking.checked_in",
        booking_id=booking.pk,
        condition=condition,
        overdue_days=lifecycle.days_overdue(lifecycle.ACTIVE, booking.end_date, booking.check_in_date),
    )
    return booking


def report_damage(booking_id: int, description: str, repair_cost: Decimal | int | str = 0) -> Booking:
    """Attach a damage report to a booking that was not cancelled."""
    if not description or not str(description).strip():
        raise ValidationError("Damage description is required", field="description")
    cost = _non_negative_amount(repair_cost, "Repair cost")

    with transaction.atomic():
        booking, _equipment = _lock_booking(booking_id)
        if booking.status == Booking.Status.CANCELLED:
            raise InvalidTransitionError(
                "Cannot report damage on a cancelled booking",
                booking_id=booking.pk,
                status=booking.status,
            )
        booking.has_damage = True
        booking.damage_description = str(description).strip()
        booking.repair_cost = cost
        _save(booking, update_fields=["has_damage", "damage_description", "repair_cost", "updated_at"])

    logger.warning("booking.damage_reported", booking_id=booking.pk, repair_cost=str(cost))
    return booking


def return_deposit(booking_id: int) -> Booking:
    """Mark the deposit of a completed booking as returned."""
    with transaction.atomic():
        booking, _equipment = _lock_booking(booking_id)
        if booking.status != Booking.Status.COMPLETED:
            raise InvalidTransitionError(
                "Deposit can only be returned after check-in",
                booking_id=booking.pk,
                status=booking.status,
            )
        if booking.deposit_returned:
            raise InvalidTransitionError("Deposit was already returned", booking_id=booking.pk)
        booking.deposit_returned = True
        booking.deposit_return_date = timezone.now()
        _save(booking, update_fields=["deposit_returned", "deposit_return_date", "updated_at"])

    logger.info("booking.deposit_returned", booking_id=booking.pk, deposit=str(booking.deposit))
    return booking


# --- reads -------------------------------------------------------------------------

def list_overdue(now: datetime | None = None):
    """Active bookings past their end date, oldest end date first."""
    cutoff = lifecycle.overdue_cutoff(now)
    return (
        Booking.objects.filter(status=Booking.Status.ACTIVE, end_date__lte=cutoff)
        .select_related("equipment", "user")
        .order_by("end_date", "pk")
    )


def list_upcoming(now: datetime | None = None, limit: int = 10) -> list[Booking]:
    """Approved or active bookings starting today or later."""
    today = timezone.localdate(now or timezone.now())
    qs = (
        Booking.objects.filter(
            status__in=(Booking.Status.APPROVED, Booking.Status.ACTIVE),
            start_date__gte=today,
        )
        .select_related("equipment", "user")
        .order_by("start_date", "pk")
    )
    return list(qs[:limit])


def get_statistics(now: datetime | None = None) -> dict[str, Any]:
    now = now or timezone.now()
    qs = Booking.objects.all()

    by_status = {row["status"]: row["count"] for row in qs.values("status").annotate(count=Count("id")).order_by()}
    revenue = qs.exclude(status=Booking.Status.CANCELLED).aggregate(total=Sum("total_cost"))["total"]

    today = timezone.localdate(now)
    first_month = today.year * 12 + today.month - 1 - 11
    trend_start = date(first_month // 12, first_month % 12 + 1, 1)
    monthly = (
        qs.filter(created_at__date__gte=trend_start)
        .annotate(month=TruncMonth("created_at"))
        .values("month")
        .annotate(count=Count("id"))
        .order_by("month")
    )
    top_equipment = (
        qs.values("equipment_id", "equipment__name")
        .annotate(count=Count("id"))
        .order_by("-count", "equipment_id")[:10]
    )

    return {
        "overview": {
            "total": qs.count(),
            **{status: by_status.get(status, 0) for status in Booking.Status.values},
            "total_revenue": revenue or Decimal("0.00"),
            "overdue": list_overdue(now).count(),
        },
        "monthly_trends": [
            {"month": row["month"].strftime("%Y-%m"), "count": row["count"]} for row in monthly
        ],
        "top_equipment": [
            {"equipment_id": row["equipment_id"], "name": row["equipment__name"], "count": row["count"]}
            for row in top_equipment
        ],
    }


def export_bookings_csv(queryset=None) -> Iterator[str]:
    """Yield the bookings as CSV text, header first."""
    if queryset is None:
        queryset = Booking.objects.all()
    queryset = queryset.select_related("equipment", "user").order_by("-created_at")

    buffer = io.StringIO()
    writer = csv.writer(buffer)

    def flush() -> str:
        value = buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
        return value

    writer.writerow(CSV_COLUMNS)
    yield flush()
    for booking in queryset.iterator():
        writer.writerow(
            [
                booking.pk,
                booking.equipment.name,
                booking.user.get_full_name() or booking.user.email,
                booking.start_date.isoformat(),
                booking.end_date.isoformat(),
                booking.status,
                booking.purpose,
                booking.total_cost,
                booking.notes,
            ]
        )
        yield flush()
