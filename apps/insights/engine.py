"""Heuristic insights over booking history.

Nothing here is learned: predictions multiply a history-based base
probability by the seasonal and weekday factors of a ``PredictionConfig``.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

import structlog
from django.db.models import Count  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings import services as booking_services
from apps.bookings.models import Booking
from apps.equipment.models import Equipment
from apps.equipment.services import get_equipment
from shared.domain.value_objects import DateRange

from .config import DEFAULT_CONFIG, PredictionConfig

logger = structlog.get_logger(__name__)

USED_STATUSES = (Booking.Status.COMPLETED, Booking.Status.ACTIVE)


def _equipment_summary(equipment: Equipment) -> dict[str, Any]:
    return {
        "id": equipment.pk,
        "name": equipment.name,
        "full_name": equipment.full_name,
        "category": equipment.category,
        "daily_rate": equipment.daily_rate,
    }


class InsightsEngine:
    def __init__(self, config: PredictionConfig = DEFAULT_CONFIG):
        self.config = config

    def predict_availability(
        self,
        equipment_id: int,
        start_date: date,
        end_date: date,
        today: date | None = None,
    ) -> dict[str, Any]:
        """Estimated chance the equipment is free for the dates."""
        equipment = get_equipment(equipment_id)
        period = DateRange(start_date, end_date)
        today = today or timezone.localdate()

        window_start = today - timedelta(days=self.config.history_window_days)
        history = list(
            Booking.objects.filter(
                equipment_id=equipment.pk,
                status__in=USED_STATUSES,
                start_date__gte=window_start,
            ).only("start_date", "end_date")
        )

        base_probability = self.config.base_probability
        if history:
            used_days = sum(booking.duration for booking in history)
            usage_rate = used_days / self.config.history_window_days
            base_probability = max(self.config.min_probability, 1 - usage_rate)

        seasonal_multiplier = self.config.seasonal_multiplier(equipment.category, period.start_date.month)
        day_multiplier = self.config.day_multiplier(period.start_date.weekday())
        probability = min(1.0, max(0.0, base_probability * seasonal_multiplier * day_multiplier))

        return {
            "equipment_id": equipment.pk,
            "equipment_name": equipment.name,
            "start_date": period.start_date,
            "end_date": period.end_date,
            "days": period.days,
            "availability_probability": round(probability, 4),
            "confidence": self.config.confidence(len(history)),
            "has_conflict": booking_services.has_conflict(equipment.pk, period.start_date, period.end_date),
            "factors": {
                "base_probability": round(base_probability, 4),
                "seasonal_multiplier": seasonal_multiplier,
                "day_multiplier": day_multiplier,
                "historical_bookings": len(history),
            },
        }

    def _available_in(self, category: str, limit: int, exclude_id: int) -> list[Equipment]:
        return list(
            Equipment.objects.filter(
                category=category,
                status=Equipment.Status.AVAILABLE,
                is_active=True,
            )
            .exclude(pk=exclude_id)
            .order_by("-total_rentals", "pk")[:limit]
        )

    def smart_suggestions(self, equipment_id: int, user_id: int | None) -> dict[str, Any]:
        """Equipment often rented alongside ``equipment_id``."""
        equipment = get_equipment(equipment_id)
        suggestions: list[dict[str, Any]] = []

        for category in self.config.combinations.get(equipment.category, ()):
            items = self._available_in(category, self.config.suggestions_per_combination, equipment.pk)
            suggestions.append(
                {
                    "type": "category",
                    "category": category,
                    "equipment": [_equipment_summary(item) for item in items],
                    "reason": f"Often rented with {equipment.category}",
                }
            )

        if user_id is not None:
            history_categories = (
                Booking.objects.filter(user_id=user_id, status__in=USED_STATUSES)
                .values_list("equipment__category", flat=True)
                .distinct()
                .order_by("equipment__category")
            )
            for category in history_categories:
                if category == equipment.category:
                    continue
                items = self._available_in(category, self.config.suggestions_per_history_category, equipment.pk)
                if items:
                    suggestions.append(
                        {
                            "type": "user_history",
                            "category": category,
                            "equipment": [_equipment_summary(item) for item in items],
                            "reason": "Based on your booking history",
                        }
                    )

        return {
            "primary_equipment": _equipment_summary(equipment),
            "suggestions": suggestions[: self.config.suggestion_limit],
        }

    def _severity(self, days: int) -> str:
        if days > self.config.overdue_high_days:
            return "high"
        if days > self.config.overdue_medium_days:
            return "medium"
        return "low"

    def detect_anomalies(self, now: datetime | None = None) -> list[dict[str, Any]]:
        """Overdue rentals and users booking unusually often."""
        now = now or timezone.now()
        anomalies: list[dict[str, Any]] = []

        for booking in booking_services.list_overdue(now):
            days = booking.overdue_at(now)
            anomalies.append(
                {
                    "type": "overdue",
                    "severity": self._severity(days),
                    "booking_id": booking.pk,
                    "equipment_id": booking.equipment_id,
                    "user_id": booking.user_id,
                    "days_overdue": days,
                    "description": f"Equipment overdue by {days} days",
                }
            )

        since = now - timedelta(days=self.config.activity_window_days)
        busy_users = (
            Booking.objects.filter(created_at__gte=since)
            .values("user_id")
            .annotate(count=Count("id"))
            .filter(count__gt=self.config.activity_threshold)
            .order_by("-count", "user_id")
        )
        for row in busy_users:
            anomalies.append(
                {
                    "type": "high_activity",
                    "severity": "medium",
                    "user_id": row["user_id"],
                    "booking_count": row["count"],
                    "description": (
                        f"User has {row['count']} bookings in the last {self.config.activity_window_days} days"
                    ),
                }
            )

        if anomalies:
            logger.info("insights.anomalies_detected", count=len(anomalies))
        return anomalies

    def usage_report(self, start_date: date, end_date: date) -> dict[str, Any]:
        """Usage and revenue of bookings held entirely inside the window."""
        period = DateRange(start_date, end_date)
        bookings = (
            Booking.objects.filter(
                start_date__gte=period.start_date,
                end_date__lte=period.end_date,
                status__in=USED_STATUSES,
            )
            .select_related("equipment")
            .order_by("start_date", "pk")
        )

        equipment_stats: dict[int, dict[str, Any]] = {}
        category_stats: dict[str, dict[str, Any]] = {}
        total_revenue = Decimal("0.00")

        for booking in bookings:
            total_revenue += booking.total_cost
            item = equipment_stats.setdefault(
                booking.equipment_id,
                {"equipment": _equipment_summary(booking.equipment), "bookings": 0, "total_days": 0,
                 "revenue": Decimal("0.00")},
            )
            category = category_stats.setdefault(
                booking.equipment.category,
                {"bookings": 0, "total_days": 0, "revenue": Decimal("0.00")},
            )
            for stats in (item, category):
                stats["bookings"] += 1
                stats["total_days"] += booking.duration
                stats["revenue"] += booking.total_cost

        usage = list(equipment_stats.values())
        return {
            "period": {"start_date": period.start_date, "end_date": period.end_date},
            "total_bookings": sum(item["bookings"] for item in usage),
            "total_revenue": total_revenue,
            "equipment_usage": usage,
            "category_usage": category_stats,
            "popular_equipment": sorted(usage, key=lambda item: item["bookings"], reverse=True)[:10],
        }
