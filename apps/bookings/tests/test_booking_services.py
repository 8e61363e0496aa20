"""Service-level tests for booking creation, conflicts and transitions."""

from __future__ import annotations

import math
import random
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.bookings import services
from apps.bookings.domain import lifecycle
from apps.bookings.models import Booking
from apps.equipment.models import Equipment
from shared.domain.exceptions import ConflictError, InvalidTransitionError, NotFoundError, ValidationError


def _book(equipment, user, start, end, **kwargs):
    return services.create_booking(equipment.pk, user.pk, start, end, **kwargs)


@pytest.mark.django_db
def test_create_booking_derives_cost(equipment, renter):
    booking = _book(equipment, renter, date(2024, 1, 1), date(2024, 1, 5), rates={"daily": 100})

    assert booking.status == Booking.Status.PENDING
    assert booking.total_cost == Decimal("400.00")
    assert booking.duration == 4


@pytest.mark.django_db
def test_monthly_rate_from_equipment(make_equipment, renter):
    equipment = make_equipment(daily_rate=Decimal("10"), monthly_rate=Decimal("250"))

    booking = _book(equipment, renter, date(2024, 1, 10), date(2024, 2, 15))

    assert booking.daily_rate == Decimal("10")
    assert booking.monthly_rate == Decimal("250")
    assert booking.weekly_rate is None
    assert booking.total_cost == Decimal("310.00")


@pytest.mark.django_db
def test_partial_rates_are_merged_with_equipment(make_equipment, renter):
    equipment = make_equipment(daily_rate=Decimal("30"), weekly_rate=Decimal("150"))

    booking = _book(equipment, renter, date(2024, 4, 1), date(2024, 4, 9), rates={"daily": 25})

    assert booking.daily_rate == Decimal("25")
    assert booking.weekly_rate == Decimal("150")
    assert booking.total_cost == Decimal("175.00")


@pytest.mark.django_db
def test_stored_cost_follows_date_changes(equipment, renter):
    booking = _book(equipment, renter, date(2024, 1, 1), date(2024, 1, 5))

    booking = services.update_booking(booking.pk, end_date=date(2024, 1, 3))

    booking.refresh_from_db()
    assert booking.total_cost == Decimal("200.00")
    assert booking.total_cost == booking.calculate_total_cost()


@pytest.mark.django_db
def test_direct_cost_edits_do_not_survive_save(equipment, renter):
    booking = _book(equipment, renter, date(2024, 1, 1), date(2024, 1, 5))

    booking.total_cost = Decimal("1.00")
    booking.save()

    booking.refresh_from_db()
    assert booking.total_cost == Decimal("400.00")


@pytest.mark.django_db
def test_invalid_input_is_rejected(equipment, renter):
    with pytest.raises(ValidationError):
        _book(equipment, renter, date(2024, 1, 5), date(2024, 1, 5))
    with pytest.raises(ValidationError):
        _book(equipment, renter, date(2024, 1, 1), date(2024, 1, 5), rates={"daily": -5})
    with pytest.raises(ValidationError):
        _book(equipment, renter, date(2024, 1, 1), date(2024, 1, 5), deposit="-1")
    with pytest.raises(NotFoundError):
        services.create_booking(999999, renter.pk, date(2024, 1, 1), date(2024, 1, 5))
    with pytest.raises(NotFoundError):
        services.create_booking(equipment.pk, 999999, date(2024, 1, 1), date(2024, 1, 5))
    assert Booking.objects.count() == 0


@pytest.mark.django_db
def test_iso_string_dates_are_parsed(equipment, renter):
    booking = _book(equipment, renter, "2024-01-01", "2024-01-05", rates={"daily": 100})

    assert booking.start_date == date(2024, 1, 1)
    assert booking.end_date == date(2024, 1, 5)
    assert booking.total_cost == Decimal("400.00")


@pytest.mark.django_db
def test_unparsable_or_mixed_dates_raise_validation_error(equipment, renter):
    with pytest.raises(ValidationError):
        _book(equipment, renter, "next tuesday", "2024-01-05")
    with pytest.raises(ValidationError):
        _book(equipment, renter, "2024-01-01", 20240105)
    with pytest.raises(ValidationError):
        services.has_conflict(equipment.pk, "2024-13-01", "2024-01-05")

    booking = _book(
        equipment,
        renter,
        timezone.make_aware(datetime(2024, 2, 1, 15, 30)),
        date(2024, 2, 3),
    )
    assert booking.start_date == date(2024, 2, 1)
    assert booking.duration == 2


@pytest.mark.django_db
def test_out_of_service_equipment_cannot_be_booked(make_equipment, renter):
    equipment = make_equipment(status=Equipment.Status.MAINTENANCE)

    with pytest.raises(ValidationError):
        _book(equipment, renter, date(2024, 1, 1), date(2024, 1, 5))


@pytest.mark.django_db
def test_overlapping_pending_request_conflicts(equipment, renter):
    first = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 10))

    with pytest.raises(ConflictError) as excinfo:
        _book(equipment, renter, date(2024, 3, 5), date(2024, 3, 8))

    assert excinfo.value.context["conflicts"] == [first.pk]
    assert Booking.objects.count() == 1


@pytest.mark.django_db
def test_back_to_back_bookings_do_not_conflict(equipment, renter):
    _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))
    second = _book(equipment, renter, date(2024, 3, 5), date(2024, 3, 8))

    assert second.pk is not None
    assert not services.has_conflict(equipment.pk, date(2024, 3, 8), date(2024, 3, 9))
    assert services.has_conflict(equipment.pk, date(2024, 3, 4), date(2024, 3, 6))


@pytest.mark.django_db
def test_other_equipment_and_terminal_bookings_do_not_block(make_equipment, renter, staff_user):
    camera = make_equipment()
    lens = make_equipment(category=Equipment.Category.LENS)
    booking = _book(camera, renter, date(2024, 3, 1), date(2024, 3, 10))

    _book(lens, renter, date(2024, 3, 1), date(2024, 3, 10))
    services.cancel(booking.pk, staff_user)
    again = _book(camera, renter, date(2024, 3, 2), date(2024, 3, 4))

    assert again.status == Booking.Status.PENDING


@pytest.mark.django_db
def test_random_requests_never_leave_overlaps(equipment, renter):
    rng = random.Random(7)
    base = date(2024, 1, 1)
    for _ in range(60):
        start = base + timedelta(days=rng.randint(0, 90))
        end = start + timedelta(days=rng.randint(1, 10))
        try:
            _book(equipment, renter, start, end)
        except ConflictError:
            pass

    blocking = list(
        Booking.objects.filter(equipment=equipment, status__in=("pending", "approved", "active")).order_by("start_date")
    )
    assert blocking
    for earlier, later in zip(blocking, blocking[1:]):
        assert earlier.end_date <= later.start_date


@pytest.mark.django_db
def test_second_approve_sees_overlapping_booking(equipment, renter, staff_user):
    first = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 10))
    # A request that slipped past the create-time check
    racer = Booking.objects.create(
        equipment=equipment,
        user=renter,
        start_date=date(2024, 3, 5),
        end_date=date(2024, 3, 8),
        daily_rate=Decimal("100"),
    )

    with pytest.raises(ConflictError):
        services.approve(first.pk, staff_user)

    first.refresh_from_db()
    equipment.refresh_from_db()
    assert first.status == Booking.Status.PENDING
    assert equipment.status == Equipment.Status.AVAILABLE

    services.cancel(racer.pk, staff_user)
    assert services.approve(first.pk, staff_user).status == Booking.Status.APPROVED


@pytest.mark.django_db
def test_full_rental_cycle(equipment, renter, staff_user):
    booking = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))

    booking = services.approve(booking.pk, staff_user)
    equipment.refresh_from_db()
    assert booking.approved_by == staff_user
    assert equipment.status == Equipment.Status.CHECKED_OUT

    booking = services.check_out(booking.pk, staff_user, "excellent")
    assert booking.status == Booking.Status.ACTIVE
    assert booking.check_out_condition == "excellent"

    booking = services.check_in(booking.pk, staff_user, "good")
    equipment.refresh_from_db()
    assert booking.status == Booking.Status.COMPLETED
    assert booking.check_in_condition == "good"
    assert equipment.status == Equipment.Status.AVAILABLE
    assert equipment.total_rentals == 1
    assert equipment.total_revenue == Decimal("400.00")


@pytest.mark.django_db
def test_rental_cycle_with_actor_ids(make_equipment, renter, staff_user):
    equipment = make_equipment()
    booking = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))

    booking = services.approve(booking.pk, staff_user.pk)
    assert booking.approved_by == staff_user
    booking = services.check_out(booking.pk, staff_user.pk, "good")
    assert booking.checked_out_by == staff_user
    booking = services.check_in(booking.pk, staff_user.pk, "good")
    assert booking.checked_in_by == staff_user
    equipment.refresh_from_db()
    assert equipment.last_modified_by == staff_user

    other = _book(make_equipment(), renter, date(2024, 3, 1), date(2024, 3, 5))
    other = services.cancel(other.pk, renter.pk, "x")
    assert other.cancelled_by == renter


@pytest.mark.django_db
def test_unknown_actor_id_is_not_found(equipment, renter):
    booking = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))

    with pytest.raises(NotFoundError):
        services.approve(booking.pk, 999999)
    with pytest.raises(NotFoundError):
        services.cancel(booking.pk, "nobody")

    booking.refresh_from_db()
    assert booking.status == Booking.Status.PENDING


@pytest.mark.django_db
def test_check_in_requires_condition(equipment, renter, staff_user):
    booking = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))
    services.approve(booking.pk, staff_user)
    services.check_out(booking.pk, staff_user)

    with pytest.raises(ValidationError):
        services.check_in(booking.pk, staff_user, "")
    with pytest.raises(ValidationError):
        services.check_in(booking.pk, staff_user, "shiny")


@pytest.mark.django_db
def test_transitions_out_of_order_are_rejected(equipment, renter, staff_user):
    booking = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))

    with pytest.raises(InvalidTransitionError):
        services.check_out(booking.pk, staff_user)
    with pytest.raises(InvalidTransitionError):
        services.check_in(booking.pk, staff_user, "good")

    booking.refresh_from_db()
    assert booking.status == Booking.Status.PENDING


@pytest.mark.django_db
def test_cancel_twice_fails_without_side_effects(equipment, renter, staff_user):
    booking = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))
    services.approve(booking.pk, staff_user)
    services.cancel(booking.pk, staff_user, "shoot postponed")
    equipment.refresh_from_db()
    assert equipment.status == Equipment.Status.AVAILABLE

    Equipment.objects.filter(pk=equipment.pk).update(status=Equipment.Status.CHECKED_OUT)
    with pytest.raises(InvalidTransitionError):
        services.cancel(booking.pk, staff_user)

    equipment.refresh_from_db()
    booking.refresh_from_db()
    assert equipment.status == Equipment.Status.CHECKED_OUT
    assert booking.cancellation_reason == "shoot postponed"


@pytest.mark.django_db
def test_cancel_keeps_equipment_held_by_another_booking(equipment, renter, staff_user):
    march = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))
    april = _book(equipment, renter, date(2024, 4, 1), date(2024, 4, 5))
    services.approve(march.pk, staff_user)
    services.approve(april.pk, staff_user)

    services.cancel(march.pk, staff_user)

    equipment.refresh_from_db()
    assert equipment.status == Equipment.Status.CHECKED_OUT


@pytest.mark.django_db
def test_check_in_keeps_equipment_held_by_another_booking(equipment, renter, staff_user):
    march = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))
    april = _book(equipment, renter, date(2024, 4, 1), date(2024, 4, 5))
    services.approve(march.pk, staff_user)
    services.approve(april.pk, staff_user)
    services.check_out(march.pk, staff_user)

    services.check_in(march.pk, staff_user, "good")

    equipment.refresh_from_db()
    assert equipment.status == Equipment.Status.CHECKED_OUT

    services.cancel(april.pk, staff_user)
    equipment.refresh_from_db()
    assert equipment.status == Equipment.Status.AVAILABLE


@pytest.mark.django_db
def test_cancel_leaves_maintenance_status_alone(equipment, renter, staff_user):
    booking = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))
    services.approve(booking.pk, staff_user)
    Equipment.objects.filter(pk=equipment.pk).update(status=Equipment.Status.MAINTENANCE)

    services.cancel(booking.pk, staff_user)

    equipment.refresh_from_db()
    assert equipment.status == Equipment.Status.MAINTENANCE


@pytest.mark.django_db
def test_completed_booking_cannot_be_changed(equipment, renter, staff_user):
    booking = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))
    services.approve(booking.pk, staff_user)
    services.check_out(booking.pk, staff_user)
    services.check_in(booking.pk, staff_user, "fair")

    with pytest.raises(InvalidTransitionError):
        services.update_booking(booking.pk, notes="late edit")
    with pytest.raises(InvalidTransitionError):
        services.cancel(booking.pk, staff_user)


@pytest.mark.django_db
def test_overdue_active_booking(equipment, renter, staff_user):
    today = timezone.localdate()
    booking = _book(equipment, renter, today - timedelta(days=10), today - timedelta(days=3))
    services.approve(booking.pk, staff_user)
    booking = services.check_out(booking.pk, staff_user)

    now = timezone.now()
    elapsed = now - lifecycle.due_at(booking.end_date)
    expected_days = math.ceil(elapsed / timedelta(days=1))

    assert booking.is_overdue
    assert booking.overdue_at(now) == expected_days
    assert list(services.list_overdue(now)) == [booking]


@pytest.mark.django_db
def test_pending_past_booking_is_not_overdue(equipment, renter):
    today = timezone.localdate()
    booking = _book(equipment, renter, today - timedelta(days=10), today - timedelta(days=3))

    assert not booking.is_overdue
    assert booking.days_overdue == 0
    assert not services.list_overdue().exists()


@pytest.mark.django_db
def test_damage_and_deposit(equipment, renter, staff_user):
    booking = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5), deposit="500")

    with pytest.raises(InvalidTransitionError):
        services.return_deposit(booking.pk)

    services.approve(booking.pk, staff_user)
    services.check_out(booking.pk, staff_user)
    services.check_in(booking.pk, staff_user, "poor")
    booking = services.report_damage(booking.pk, "Cracked viewfinder", "120.50")
    assert booking.has_damage
    assert booking.repair_cost == Decimal("120.50")

    booking = services.return_deposit(booking.pk)
    assert booking.deposit_returned
    with pytest.raises(InvalidTransitionError):
        services.return_deposit(booking.pk)


@pytest.mark.django_db
def test_check_availability_lists_conflicts(equipment, renter):
    booking = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 10))

    busy = services.check_availability(equipment.pk, date(2024, 3, 9), date(2024, 3, 12))
    free = services.check_availability(equipment.pk, date(2024, 3, 10), date(2024, 3, 12))

    assert busy["available"] is False
    assert [item["id"] for item in busy["conflicts"]] == [booking.pk]
    assert free["available"] is True


@pytest.mark.django_db
def test_statistics_and_export(make_equipment, renter, staff_user):
    camera = make_equipment()
    lens = make_equipment(name="Prime lens", category=Equipment.Category.LENS)
    kept = _book(camera, renter, date(2024, 3, 1), date(2024, 3, 5))
    dropped = _book(lens, renter, date(2024, 3, 1), date(2024, 3, 3))
    services.cancel(dropped.pk, staff_user)

    stats = services.get_statistics()

    assert stats["overview"]["total"] == 2
    assert stats["overview"]["pending"] == 1
    assert stats["overview"]["cancelled"] == 1
    assert stats["overview"]["total_revenue"] == Decimal("400.00")
    assert stats["monthly_trends"][-1]["count"] == 2
    assert stats["top_equipment"][0]["count"] == 1

    lines = "".join(services.export_bookings_csv()).strip().splitlines()
    assert lines[0] == ",".join(services.CSV_COLUMNS)
    assert len(lines) == 3
    assert any(line.startswith(f"{kept.pk},") for line in lines[1:])


@pytest.mark.django_db
def test_events_published_after_commit(equipment, renter, staff_user, monkeypatch, django_capture_on_commit_callbacks):
    from shared.application.message_bus import MessageBus
    from apps.bookings.domain.events import BookingApproved, BookingCreated

    seen = []
    bus = MessageBus()
    bus.register_event_handler(BookingCreated, seen.append)
    bus.register_event_handler(BookingApproved, seen.append)

    monkeypatch.setattr("shared.application.message_bus.message_bus", bus)
    with django_capture_on_commit_callbacks(execute=True):
        booking = _book(equipment, renter, date(2024, 3, 1), date(2024, 3, 5))
        services.approve(booking.pk, staff_user)

    assert [type(event) for event in seen] == [BookingCreated, BookingApproved]
    assert all(event.aggregate_id == booking.pk for event in seen)
