"""FilterSet definitions for location listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Location


class LocationFilterSet(django_filters.FilterSet):
    city = django_filters.CharFilter(field_name="city", lookup_expr="icontains")
    kind = django_filters.ChoiceFilter(field_name="kind", choices=Location.Kind.choices)
    is_active = django_filters.BooleanFilter(field_name="is_active")
    parent = django_filters.NumberFilter(field_name="parent_id")
    root = django_filters.BooleanFilter(field_name="parent", lookup_expr="isnull")

    class Meta:
        model = Location
        fields = ["city", "kind", "is_active", "parent"]
