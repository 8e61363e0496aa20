"""Tests for storage locations."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.db import connection
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.equipment.models import Equipment
from apps.locations import services
from apps.locations.models import Location
from apps.users.models import User


@pytest.mark.django_db
def test_refresh_capacity_counts_active_equipment(location, make_equipment):
    location.capacity_total = 4
    location.save()
    make_equipment()
    make_equipment()
    make_equipment(is_active=False)

    services.refresh_capacity_usage(location)

    location.refresh_from_db()
    assert location.capacity_used == 2
    assert location.capacity_usage == 50
    assert location.is_available


@pytest.mark.django_db
def test_full_or_inactive_location_is_unavailable():
    full = Location.objects.create(name="Locker", capacity_total=1, capacity_used=1)
    closed = Location.objects.create(name="Old shed", is_active=False)
    unlimited = Location.objects.create(name="Yard")

    assert not full.is_available
    assert not closed.is_available
    assert unlimited.is_available
    assert unlimited.capacity_usage == 0


@pytest.mark.django_db
def test_statistics_by_kind():
    Location.objects.create(name="North", kind=Location.Kind.WAREHOUSE)
    Location.objects.create(name="South", kind=Location.Kind.WAREHOUSE, is_active=False)
    Location.objects.create(name="Stage 1", kind=Location.Kind.STUDIO)

    stats = services.get_statistics()

    assert stats == {"total": 3, "active": 2, "by_kind": {"studio": 1, "warehouse": 2}}


@pytest.mark.django_db
def test_access_code_is_encrypted_at_rest():
    location = Location.objects.create(name="Vault", requires_code=True, access_code="4711")

    with connection.cursor() as cursor:
        cursor.execute("SELECT access_code FROM locations_location WHERE id = %s", [location.pk])
        stored = cursor.fetchone()[0]

    assert stored != "4711"
    assert Location.objects.get(pk=location.pk).access_code == "4711"


class LocationAPITests(APITestCase):
    def setUp(self) -> None:
        self.staff = User.objects.create_user(
            email="desk@example.com",
            password="StaffPass123",
            role=User.RoleChoices.STAFF,
        )
        self.renter = User.objects.create_user(email="renter@example.com", password="RenterPass123")
        self.warehouse = Location.objects.create(name="Warehouse", kind=Location.Kind.WAREHOUSE, city="Hamburg")
        self.shelf = Location.objects.create(name="Shelf B", parent=self.warehouse)
        self.list_url = reverse("location-list")

    def test_staff_creates_location_without_leaking_access_code(self) -> None:
        self.client.force_authenticate(self.staff)

        response = self.client.post(
            self.list_url,
            {"name": "Cage", "kind": "storage", "requires_code": True, "access_code": "0000"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertNotIn("access_code", response.data)
        self.assertEqual(Location.objects.get(pk=response.data["id"]).created_by, self.staff)

        detail = self.client.get(reverse("location-detail", args=[response.data["id"]]))
        self.assertNotIn("access_code", detail.data)

    def test_renter_reads_only(self) -> None:
        self.client.force_authenticate(self.renter)

        self.assertEqual(self.client.get(self.list_url).status_code, status.HTTP_200_OK)
        response = self.client.post(self.list_url, {"name": "Mine"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_children(self) -> None:
        self.client.force_authenticate(self.renter)

        response = self.client.get(reverse("location-children", args=[self.warehouse.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data], [self.shelf.pk])

    def test_parent_cannot_be_own_descendant(self) -> None:
        self.client.force_authenticate(self.staff)

        response = self.client.patch(
            reverse("location-detail", args=[self.warehouse.pk]),
            {"parent": self.shelf.pk},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_city(self) -> None:
        self.client.force_authenticate(self.renter)

        response = self.client.get(self.list_url, {"city": "hamburg"})

        self.assertEqual(response.data["count"], 1)

    def test_refresh_capacity_action(self) -> None:
        Equipment.objects.create(
            name="Dolly",
            category=Equipment.Category.GRIP,
            brand="Dana",
            model="Dolly",
            serial_number="DD-1",
            location=self.shelf,
            daily_rate=Decimal("60"),
        )
        self.client.force_authenticate(self.staff)

        response = self.client.post(reverse("location-refresh-capacity", args=[self.shelf.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["capacity_used"], 1)
