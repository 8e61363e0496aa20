"""Tests for the insights engine and endpoints."""

from __future__ import annotations

from dataclasses import FrozenInstanceError, replace
from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.bookings import services
from apps.bookings.models import Booking
from apps.equipment.models import Equipment
from apps.insights.config import DEFAULT_CONFIG, PredictionConfig, season_for
from apps.insights.engine import InsightsEngine
from shared.domain.exceptions import NotFoundError, ValidationError


def _completed(equipment, user, staff_user, start, end):
    booking = services.create_booking(equipment.pk, user.pk, start, end)
    services.approve(booking.pk, staff_user)
    services.check_out(booking.pk, staff_user)
    return services.check_in(booking.pk, staff_user, "good")


def test_config_is_read_only():
    with pytest.raises(FrozenInstanceError):
        DEFAULT_CONFIG.base_probability = 0.5
    with pytest.raises(TypeError):
        DEFAULT_CONFIG.day_of_week["monday"] = 2.0


def test_seasons_and_confidence():
    assert [season_for(month) for month in (1, 3, 6, 9, 12)] == ["winter", "spring", "summer", "fall", "winter"]
    assert [PredictionConfig.confidence(n) for n in (0, 4, 19, 20)] == [0.3, 0.5, 0.7, 0.9]


@pytest.mark.django_db
def test_prediction_without_history(equipment):
    # 2024-07-03 is a Wednesday in summer
    result = InsightsEngine().predict_availability(
        equipment.pk, date(2024, 7, 3), date(2024, 7, 5), today=date(2024, 7, 1)
    )

    assert result["factors"]["base_probability"] == 0.8
    assert result["factors"]["seasonal_multiplier"] == 1.3
    assert result["factors"]["day_multiplier"] == 1.0
    assert result["availability_probability"] == 1.0
    assert result["confidence"] == 0.3
    assert result["has_conflict"] is False
    assert result["days"] == 2


@pytest.mark.django_db
def test_prediction_uses_recent_history(equipment, renter, staff_user):
    _completed(equipment, renter, staff_user, date(2024, 1, 1), date(2024, 3, 1))
    engine = InsightsEngine(replace(DEFAULT_CONFIG, seasonal_trends={}))

    # 2024-06-02 is a Sunday
    result = engine.predict_availability(equipment.pk, date(2024, 6, 2), date(2024, 6, 4), today=date(2024, 6, 1))

    expected_base = 1 - 60 / 365
    assert result["factors"]["historical_bookings"] == 1
    assert result["factors"]["base_probability"] == round(expected_base, 4)
    assert result["availability_probability"] == round(expected_base * 0.5, 4)
    assert result["confidence"] == 0.5


@pytest.mark.django_db
def test_prediction_flags_conflicts_and_bad_input(equipment, renter):
    services.create_booking(equipment.pk, renter.pk, date(2024, 7, 1), date(2024, 7, 10))
    engine = InsightsEngine()

    assert engine.predict_availability(equipment.pk, date(2024, 7, 9), date(2024, 7, 12))["has_conflict"]
    with pytest.raises(ValidationError):
        engine.predict_availability(equipment.pk, date(2024, 7, 9), date(2024, 7, 9))
    with pytest.raises(NotFoundError):
        engine.predict_availability(999999, date(2024, 7, 9), date(2024, 7, 10))


@pytest.mark.django_db
def test_smart_suggestions(make_equipment, renter, staff_user):
    camera = make_equipment()
    lens = make_equipment(name="Prime 50", category=Equipment.Category.LENS)
    make_equipment(name="Broken lens", category=Equipment.Category.LENS, status=Equipment.Status.DAMAGED)
    light = make_equipment(name="Fresnel", category=Equipment.Category.LIGHTING)
    _completed(light, renter, staff_user, date(2024, 1, 1), date(2024, 1, 3))

    result = InsightsEngine().smart_suggestions(camera.pk, renter.pk)

    assert result["primary_equipment"]["id"] == camera.pk
    by_category = {item["category"]: item for item in result["suggestions"] if item["type"] == "category"}
    assert list(by_category) == ["lens", "tripod", "monitor"]
    assert [item["id"] for item in by_category["lens"]["equipment"]] == [lens.pk]
    history = [item for item in result["suggestions"] if item["type"] == "user_history"]
    assert [item["category"] for item in history] == ["lighting"]
    assert len(result["suggestions"]) <= DEFAULT_CONFIG.suggestion_limit


@pytest.mark.django_db
def test_detect_anomalies(make_equipment, renter, staff_user):
    today = timezone.localdate()
    late = make_equipment()
    booking = services.create_booking(late.pk, renter.pk, today - timedelta(days=20), today - timedelta(days=10))
    services.approve(booking.pk, staff_user)
    services.check_out(booking.pk, staff_user)

    busy = make_equipment()
    for offset in range(6):
        start = today + timedelta(days=10 + offset * 2)
        services.create_booking(busy.pk, staff_user.pk, start, start + timedelta(days=1))

    anomalies = InsightsEngine().detect_anomalies()

    overdue = [item for item in anomalies if item["type"] == "overdue"]
    assert len(overdue) == 1
    assert overdue[0]["booking_id"] == booking.pk
    assert overdue[0]["severity"] == "high"
    activity = [item for item in anomalies if item["type"] == "high_activity"]
    assert [(item["user_id"], item["booking_count"]) for item in activity] == [(staff_user.pk, 6)]


@pytest.mark.django_db
def test_usage_report(make_equipment, renter, staff_user):
    camera = make_equipment()
    lens = make_equipment(category=Equipment.Category.LENS, daily_rate=Decimal("20"))
    _completed(camera, renter, staff_user, date(2024, 2, 1), date(2024, 2, 3))
    _completed(camera, renter, staff_user, date(2024, 2, 10), date(2024, 2, 11))
    _completed(lens, renter, staff_user, date(2024, 2, 5), date(2024, 2, 7))
    services.create_booking(lens.pk, renter.pk, date(2024, 2, 20), date(2024, 2, 22))

    report = InsightsEngine().usage_report(date(2024, 2, 1), date(2024, 3, 1))

    assert report["total_bookings"] == 3
    assert report["total_revenue"] == Decimal("340.00")
    assert report["category_usage"]["camera"]["total_days"] == 3
    assert report["popular_equipment"][0]["equipment"]["id"] == camera.pk


@pytest.mark.django_db
def test_insights_endpoints(equipment, renter, staff_user):
    client = APIClient()
    client.force_authenticate(renter)

    response = client.get(
        reverse("insights-availability"),
        {"equipment": equipment.pk, "start_date": "2024-07-03", "end_date": "2024-07-05"},
    )
    assert response.status_code == status.HTTP_200_OK, response.data
    assert "availability_probability" in response.data

    response = client.get(reverse("insights-suggestions"), {"equipment": equipment.pk})
    assert response.status_code == status.HTTP_200_OK

    assert client.get(reverse("insights-anomalies")).status_code == status.HTTP_403_FORBIDDEN

    client.force_authenticate(staff_user)
    assert client.get(reverse("insights-anomalies")).data == {"anomalies": []}
    response = client.get(reverse("insights-usage-report"), {"start_date": "2024-01-01", "end_date": "2024-02-01"})
    assert response.status_code == status.HTTP_200_OK
    assert response.data["total_bookings"] == 0
