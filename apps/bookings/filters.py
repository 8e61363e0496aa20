"""FilterSet definitions for booking listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(field_name="status", choices=Booking.Status.choices)
    equipment = django_filters.NumberFilter(field_name="equipment_id")
    user = django_filters.NumberFilter(field_name="user_id")
    start_after = django_filters.DateFilter(field_name="start_date", lookup_expr="gte")
    end_before = django_filters.DateFilter(field_name="end_date", lookup_expr="lte")
    has_damage = django_filters.BooleanFilter(field_name="has_damage")

    class Meta:
        model = Booking
        fields = ["status", "equipment", "user"]
