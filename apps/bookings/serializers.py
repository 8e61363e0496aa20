"""Serializers for the booking domain.

Input serializers only shape request data; every rule (date order,
rates, conflicts, transitions) is enforced by ``apps.bookings.services``.
"""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.equipment.serializers import EquipmentShortSerializer
from apps.users.serializers import UserShortSerializer

from .models import Booking, BookingReminder

RATE_FIELDS = {"daily_rate": "daily", "weekly_rate": "weekly", "monthly_rate": "monthly"}


def rates_from(validated_data: dict) -> dict | None:
    """Rate mapping for the services, or None when no rate was sent."""
    rates = {key: validated_data[field] for field, key in RATE_FIELDS.items() if field in validated_data}
    return rates or None


class BookingReminderSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingReminder
        fields = ["kind", "sent_to", "sent_at"]


class BookingSerializer(serializers.ModelSerializer):
    """Full booking representation. Read only."""

    equipment_detail = EquipmentShortSerializer(source="equipment", read_only=True)
    user_detail = UserShortSerializer(source="user", read_only=True)
    duration = serializers.IntegerField(read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)
    days_overdue = serializers.IntegerField(read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "equipment",
            "equipment_detail",
            "user",
            "user_detail",
            "start_date",
            "end_date",
            "duration",
            "status",
            "daily_rate",
            "weekly_rate",
            "monthly_rate",
            "total_cost",
            "is_overdue",
            "days_overdue",
            "purpose",
            "project",
            "location_note",
            "notes",
            "approved_by",
            "approved_at",
            "checked_out_by",
            "check_out_date",
            "check_out_condition",
            "checked_in_by",
            "check_in_date",
            "check_in_condition",
            "cancelled_by",
            "cancelled_at",
            "cancellation_reason",
            "deposit",
            "deposit_returned",
            "deposit_return_date",
            "has_damage",
            "damage_description",
            "repair_cost",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingDetailSerializer(BookingSerializer):
    reminders = BookingReminderSerializer(many=True, read_only=True)

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ["reminders"]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    """Booking request. Rates default to the equipment's rate card; only staff may override them."""

    equipment = serializers.IntegerField()
    user = serializers.IntegerField(required=False, help_text="Staff only: book on behalf of another user")
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    daily_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    weekly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    monthly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    purpose = serializers.CharField(max_length=500, required=False, allow_blank=True)
    project = serializers.CharField(max_length=200, required=False, allow_blank=True)
    location_note = serializers.CharField(max_length=200, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    deposit = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)


class BookingUpdateSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    daily_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    weekly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    monthly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    purpose = serializers.CharField(max_length=500, required=False, allow_blank=True)
    project = serializers.CharField(max_length=200, required=False, allow_blank=True)
    location_note = serializers.CharField(max_length=200, required=False, allow_blank=True)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class CheckOutSerializer(serializers.Serializer):
    condition = serializers.ChoiceField(choices=Booking.Condition.choices, required=False)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class CheckInSerializer(serializers.Serializer):
    condition = serializers.ChoiceField(choices=Booking.Condition.choices)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class DamageReportSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=1000)
    repair_cost = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, default=0)


class AvailabilityQuerySerializer(serializers.Serializer):
    equipment = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
