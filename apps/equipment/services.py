"""Domain services for the equipment catalogue."""

from __future__ import annotations

import json
import datetime
from decimal import Decimal
from typing import Any

import structlog
from django.db import transaction  # type: ignore
from django.db.models import Count, Sum  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.exceptions import NotFoundError, ValidationError

from .models import Equipment, MaintenanceRecord

logger = structlog.get_logger(__name__)


def get_equipment(equipment_id: int) -> Equipment:
    try:
        return Equipment.objects.select_related("location").get(pk=equipment_id)
    except (Equipment.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Equipment {equipment_id} not found", equipment_id=equipment_id)


def lock_equipment(equipment_id: int) -> Equipment:
    """Fetch the equipment row with SELECT ... FOR UPDATE.

    Must run inside transaction.atomic(). Bookings for the same item are
    serialized on this lock; backends without row locks fall back to a
    plain read.
    """
    queryset = Equipment.objects.filter(pk=equipment_id)
    if transaction.get_connection().in_atomic_block:
        try:
            queryset = queryset.select_for_update()
        except NotSupportedError:
            pass
    try:
        return queryset.get()
    except (Equipment.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Equipment {equipment_id} not found", equipment_id=equipment_id)


def update_status(equipment: Equipment, status: str, *, notes: str = "", actor=None) -> Equipment:
    """Set the equipment status by hand (repairs, losses, audits)."""
    if status not in Equipment.Status.values:
        raise ValidationError(f"Unknown equipment status '{status}'", field="status")

    previous = equipment.status
    equipment.status = status
    update_fields = ["status", "last_modified_by", "updated_at"]
    if notes:
        equipment.notes = notes
        update_fields.append("notes")
    equipment.last_modified_by = actor
    equipment.save(update_fields=update_fields)
    logger.info(
        "equipment.status_changed",
        equipment_id=equipment.pk,
        previous=previous,
        status=status,
        actor_id=getattr(actor, "pk", None),
    )
    return equipment


@transaction.atomic
def add_maintenance_record(
    equipment: Equipment,
    *,
    description: str,
    cost: Decimal | int | str = 0,
    date: datetime.date | None = None,
    actor=None,
) -> MaintenanceRecord:
    """Log a maintenance job and put the item into maintenance."""
    if not description or not str(description).strip():
        raise ValidationError("Maintenance description is required", field="description")
    try:
        amount = Decimal(str(cost or 0))
    except ArithmeticError:
        raise ValidationError("Maintenance cost must be a number", field="cost")
    if amount < 0:
        raise ValidationError("Maintenance cost cannot be negative", field="cost")

    record = MaintenanceRecord.objects.create(
        equipment=equipment,
        description=description.strip(),
        cost=amount,
        date=date or timezone.localdate(),
        performed_by=actor,
    )
    equipment.status = Equipment.Status.MAINTENANCE
    equipment.last_modified_by = actor
    equipment.save(update_fields=["status", "last_modified_by", "updated_at"])
    logger.info("equipment.maintenance_added", equipment_id=equipment.pk, record_id=record.pk, cost=str(amount))
    return record


def find_by_qr(code: str) -> Equipment:
    """Resolve a scanned QR code.

    Accepts either the stored code string (``EQ-<SERIAL>-<ms>``) or a JSON
    payload carrying the equipment ``id``.
    """
    code = (code or "").strip()
    if not code:
        raise ValidationError("QR code is required", field="code")

    equipment = Equipment.objects.select_related("location").filter(qr_code=code, is_active=True).first()
    if equipment is not None:
        return equipment

    try:
        payload = json.loads(code)
    except ValueError:
        raise NotFoundError("No equipment matches this QR code", code=code)
    if not isinstance(payload, dict) or "id" not in payload:
        raise ValidationError("QR payload does not contain an equipment id", field="code")
    return get_equipment(payload["id"])


def qr_payload(equipment: Equipment) -> dict[str, Any]:
    """Data encoded into printed QR labels."""
    return {
        "id": equipment.pk,
        "type": "equipment",
        "name": equipment.name,
        "serial_number": equipment.serial_number,
        "category": equipment.category,
        "location": equipment.location_id,
        "qr_code": equipment.qr_code,
    }


def get_statistics() -> dict[str, Any]:
    qs = Equipment.objects.all()
    by_status = {row["status"]: row["count"] for row in qs.values("status").annotate(count=Count("id")).order_by()}
    totals = qs.aggregate(total_value=Sum("current_value"), total_revenue=Sum("total_revenue"))
    return {
        "overview": {
            "total": qs.count(),
            **{status: by_status.get(status, 0) for status in Equipment.Status.values},
        },
        "by_category": list(
            qs.values("category").annotate(count=Count("id")).order_by("-count", "category")
        ),
        "by_location": list(
            qs.values("location_id", "location__name").annotate(count=Count("id")).order_by("-count")
        ),
        "total_value": totals["total_value"] or Decimal("0"),
        "total_revenue": totals["total_revenue"] or Decimal("0"),
    }
