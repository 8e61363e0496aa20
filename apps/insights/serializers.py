"""Query parameter serializers for the insights endpoints."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore


class AvailabilityQuerySerializer(serializers.Serializer):
    equipment = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()


class SuggestionsQuerySerializer(serializers.Serializer):
    equipment = serializers.IntegerField()
    user = serializers.IntegerField(required=False)


class UsageReportQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()
