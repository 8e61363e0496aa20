"""Serializers for the equipment catalogue."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.locations.serializers import LocationShortSerializer

from .models import Equipment, MaintenanceRecord


class MaintenanceRecordSerializer(serializers.ModelSerializer):
    performed_by_email = serializers.ReadOnlyField(source="performed_by.email")

    class Meta:
        model = MaintenanceRecord
        fields = ["id", "date", "description", "cost", "performed_by", "performed_by_email", "created_at"]
        read_only_fields = ["id", "performed_by", "performed_by_email", "created_at"]


class EquipmentSerializer(serializers.ModelSerializer):
    """Equipment representation used for list, create and update."""

    full_name = serializers.CharField(read_only=True)
    is_available = serializers.BooleanField(read_only=True)
    age = serializers.IntegerField(read_only=True, allow_null=True)
    location_detail = LocationShortSerializer(source="location", read_only=True)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    class Meta:
        model = Equipment
        fields = [
            "id",
            "name",
            "full_name",
            "category",
            "brand",
            "model",
            "serial_number",
            "description",
            "specifications",
            "status",
            "is_available",
            "location",
            "location_detail",
            "qr_code",
            "purchase_date",
            "purchase_price",
            "current_value",
            "age",
            "daily_rate",
            "weekly_rate",
            "monthly_rate",
            "tags",
            "notes",
            "is_active",
            "last_checked_out",
            "last_checked_in",
            "total_rentals",
            "total_revenue",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "status",
            "qr_code",
            "last_checked_out",
            "last_checked_in",
            "total_rentals",
            "total_revenue",
            "created_at",
            "updated_at",
        ]

    def validate_serial_number(self, value: str) -> str:
        value = value.strip().upper()
        qs = Equipment.objects.filter(serial_number=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Equipment with this serial number already exists.")
        return value

    def validate_specifications(self, value):  # type: ignore
        if not isinstance(value, dict):
            raise serializers.ValidationError("Specifications must be an object.")
        return value


class EquipmentDetailSerializer(EquipmentSerializer):
    maintenance_records = MaintenanceRecordSerializer(many=True, read_only=True)

    class Meta(EquipmentSerializer.Meta):
        fields = EquipmentSerializer.Meta.fields + ["maintenance_records"]


class EquipmentShortSerializer(serializers.ModelSerializer):
    class Meta:
        model = Equipment
        fields = ["id", "name", "brand", "model", "serial_number", "category", "status"]


class EquipmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Equipment.Status.choices)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class MaintenanceCreateSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=1000)
    cost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, default=0)
    date = serializers.DateField(required=False)
