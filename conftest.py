"""Shared pytest fixtures for the rental apps."""

from __future__ import annotations

from decimal import Decimal

import pytest

from apps.equipment.models import Equipment
from apps.locations.models import Location
from apps.users.models import User


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        email="desk@example.com",
        password="StaffPass123",
        first_name="Dana",
        last_name="Desk",
        role=User.RoleChoices.STAFF,
    )


@pytest.fixture
def renter(db):
    return User.objects.create_user(
        email="renter@example.com",
        password="RenterPass123",
        first_name="Rita",
        last_name="Renter",
    )


@pytest.fixture
def location(db):
    return Location.objects.create(name="Main warehouse", kind=Location.Kind.WAREHOUSE, city="Berlin")


@pytest.fixture
def make_equipment(location):
    counter = {"n": 0}

    def factory(**overrides):
        counter["n"] += 1
        fields = {
            "name": f"Camera body {counter['n']}",
            "category": Equipment.Category.CAMERA,
            "brand": "Arri",
            "model": "Alexa Mini",
            "serial_number": f"sn-{counter['n']:04d}",
            "location": location,
            "daily_rate": Decimal("100.00"),
        }
        fields.update(overrides)
        return Equipment.objects.create(**fields)

    return factory


@pytest.fixture
def equipment(make_equipment):
    return make_equipment()
