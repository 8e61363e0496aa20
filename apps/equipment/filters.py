"""FilterSet definitions for equipment listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Equipment


class EquipmentFilterSet(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(field_name="status", choices=Equipment.Status.choices)
    category = django_filters.ChoiceFilter(field_name="category", choices=Equipment.Category.choices)
    location = django_filters.NumberFilter(field_name="location_id")
    brand = django_filters.CharFilter(field_name="brand", lookup_expr="iexact")
    is_active = django_filters.BooleanFilter(field_name="is_active")
    tag = django_filters.CharFilter(method="filter_tag")
    rate_max = django_filters.NumberFilter(field_name="daily_rate", lookup_expr="lte")

    class Meta:
        model = Equipment
        fields = ["status", "category", "location", "brand", "is_active"]

    def filter_tag(self, queryset, name, value):  # type: ignore
        if not value:
            return queryset
        tag = value.strip().lower()
        ids = [pk for pk, tags in queryset.values_list("pk", "tags") if tag in (tags or [])]
        return queryset.filter(pk__in=ids)
