"""Serializers for storage locations."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Location


class LocationSerializer(serializers.ModelSerializer):
    """Location representation; the access code is accepted but never returned."""

    access_code = serializers.CharField(
        write_only=True,
        required=False,
        allow_blank=True,
        max_length=50,
    )
    full_address = serializers.CharField(read_only=True)
    capacity_usage = serializers.IntegerField(read_only=True)
    is_available = serializers.BooleanField(read_only=True)
    parent_name = serializers.CharField(source="parent.name", read_only=True, default=None)
    facilities = serializers.ListField(
        child=serializers.ChoiceField(choices=Location.Facility.choices),
        required=False,
    )

    class Meta:
        model = Location
        fields = [
            "id",
            "name",
            "kind",
            "parent",
            "parent_name",
            "street",
            "city",
            "state",
            "zip_code",
            "country",
            "full_address",
            "description",
            "capacity_total",
            "capacity_used",
            "capacity_usage",
            "is_available",
            "contact_name",
            "contact_email",
            "contact_phone",
            "facilities",
            "requires_key",
            "requires_code",
            "access_code",
            "security_notes",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "capacity_used", "created_at", "updated_at"]

    def validate_parent(self, value):  # type: ignore
        if value is not None and self.instance is not None:
            if value.pk == self.instance.pk or value.is_descendant_of(self.instance):
                raise serializers.ValidationError("A location cannot be nested inside itself.")
        return value


class LocationShortSerializer(serializers.ModelSerializer):
    class Meta:
        model = Location
        fields = ["id", "name", "kind", "city"]
