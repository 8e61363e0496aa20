"""Tests for equipment domain services."""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from apps.equipment import services
from apps.equipment.models import Equipment, MaintenanceRecord
from shared.domain.exceptions import NotFoundError, ValidationError


@pytest.mark.django_db
def test_save_normalizes_serial_tags_and_qr(make_equipment):
    equipment = make_equipment(serial_number=" abc-123 ", tags=[" Cinema ", "", "4K"])

    assert equipment.serial_number == "ABC-123"
    assert equipment.tags == ["cinema", "4k"]
    assert equipment.qr_code.startswith("EQ-ABC-123-")


@pytest.mark.django_db
def test_zero_rates_are_not_offered(make_equipment):
    rates = make_equipment(daily_rate=Decimal("50"), weekly_rate=Decimal("0")).rental_rates

    assert rates.daily == Decimal("50")
    assert rates.weekly is None
    assert rates.monthly is None


@pytest.mark.django_db
def test_find_by_stored_code_and_json_payload(equipment):
    assert services.find_by_qr(equipment.qr_code) == equipment
    assert services.find_by_qr(json.dumps(services.qr_payload(equipment))) == equipment


@pytest.mark.django_db
def test_find_by_unknown_code(equipment):
    with pytest.raises(NotFoundError):
        services.find_by_qr("EQ-NOPE")
    with pytest.raises(ValidationError):
        services.find_by_qr(json.dumps({"serial": "x"}))
    with pytest.raises(NotFoundError):
        services.find_by_qr(json.dumps({"id": 999999}))
    with pytest.raises(ValidationError):
        services.find_by_qr("  ")


@pytest.mark.django_db
def test_update_status(equipment, staff_user):
    services.update_status(equipment, Equipment.Status.DAMAGED, notes="Dropped on set", actor=staff_user)

    equipment.refresh_from_db()
    assert equipment.status == Equipment.Status.DAMAGED
    assert equipment.is_out_of_service
    assert equipment.notes == "Dropped on set"
    assert equipment.last_modified_by == staff_user

    with pytest.raises(ValidationError):
        services.update_status(equipment, "vanished")


@pytest.mark.django_db
def test_maintenance_record_puts_item_in_maintenance(equipment, staff_user):
    record = services.add_maintenance_record(equipment, description="Sensor clean", cost="80", actor=staff_user)

    equipment.refresh_from_db()
    assert equipment.status == Equipment.Status.MAINTENANCE
    assert record.cost == Decimal("80")
    assert record.performed_by == staff_user
    assert MaintenanceRecord.objects.filter(equipment=equipment).count() == 1


@pytest.mark.django_db
def test_maintenance_record_validation(equipment):
    with pytest.raises(ValidationError):
        services.add_maintenance_record(equipment, description="  ")
    with pytest.raises(ValidationError):
        services.add_maintenance_record(equipment, description="Fix", cost="-3")

    equipment.refresh_from_db()
    assert equipment.status == Equipment.Status.AVAILABLE


@pytest.mark.django_db
def test_statistics(make_equipment):
    make_equipment(current_value=Decimal("1000"))
    make_equipment(category=Equipment.Category.LENS, status=Equipment.Status.LOST, current_value=Decimal("250"))

    stats = services.get_statistics()

    assert stats["overview"]["total"] == 2
    assert stats["overview"]["available"] == 1
    assert stats["overview"]["lost"] == 1
    assert stats["total_value"] == Decimal("1250")
    assert {row["category"] for row in stats["by_category"]} == {"camera", "lens"}
    assert stats["by_location"][0]["count"] == 2
