"""Location domain services."""

from __future__ import annotations

from typing import Any

import structlog
from django.db.models import Count  # type: ignore

from .models import Location

logger = structlog.get_logger(__name__)


def refresh_capacity_usage(location: Location) -> Location:
    """Recount the active equipment stored at ``location``."""
    from apps.equipment.models import Equipment

    used = Equipment.objects.filter(location=location, is_active=True).count()
    location.capacity_used = used
    location.save(update_fields=["capacity_used", "updated_at"])
    logger.info("location.capacity_refreshed", location_id=location.pk, used=used)
    return location


def get_statistics() -> dict[str, Any]:
    qs = Location.objects.all()
    by_kind = {
        row["kind"]: row["count"]
        for row in qs.values("kind").annotate(count=Count("id")).order_by("kind")
    }
    return {
        "total": qs.count(),
        "active": qs.filter(is_active=True).count(),
        "by_kind": by_kind,
    }
