"""Location models with an MPTT tree structure for storage sites."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from mptt.models import MPTTModel, TreeForeignKey  # type: ignore

from shared.infrastructure.fields import EncryptedCharField


class Location(MPTTModel):
    """Hierarchical storage location (warehouse, studio, shelf...)."""

    class Kind(models.TextChoices):
        WAREHOUSE = "warehouse", "Warehouse"
        STUDIO = "studio", "Studio"
        OFFICE = "office", "Office"
        STORAGE = "storage", "Storage"
        WORKSHOP = "workshop", "Workshop"
        OTHER = "other", "Other"

    class Facility(models.TextChoices):
        LOADING_DOCK = "loading_dock", "Loading dock"
        PARKING = "parking", "Parking"
        SECURITY = "security", "Security"
        CLIMATE_CONTROL = "climate_control", "Climate control"
        POWER_OUTLETS = "power_outlets", "Power outlets"
        INTERNET = "internet", "Internet"
        BATHROOM = "bathroom", "Bathroom"
        KITCHEN = "kitchen", "Kitchen"
        MEETING_ROOM = "meeting_room", "Meeting room"
        WORKSHOP = "workshop", "Workshop"
        OTHER = "other", "Other"

    name = models.CharField(max_length=100, verbose_name="Name")
    kind = models.CharField(
        max_length=20,
        choices=Kind.choices,
        default=Kind.STORAGE,
        verbose_name="Kind",
    )
    parent = TreeForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="children",
        verbose_name="Parent location",
    )

    street = models.CharField(max_length=200, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=100, blank=True)
    description = models.TextField(max_length=500, blank=True)

    capacity_total = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Number of equipment items the location can hold; empty means unlimited",
    )
    capacity_used = models.PositiveIntegerField(default=0)

    contact_name = models.CharField(max_length=100, blank=True)
    contact_email = models.EmailField(blank=True)
    contact_phone = models.CharField(max_length=30, blank=True)

    facilities = models.JSONField(default=list, blank=True)

    requires_key = models.BooleanField(default=False)
    requires_code = models.BooleanField(default=False)
    access_code = EncryptedCharField(
        max_length=50,
        blank=True,
        help_text="Door or alarm code, stored encrypted",
    )
    security_notes = models.TextField(max_length=500, blank=True)

    is_active = models.BooleanField(default=True, verbose_name="Active")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_locations",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class MPTTMeta:
        order_insertion_by = ["name"]

    class Meta:
        verbose_name = "Location"
        verbose_name_plural = "Locations"
        ordering = ["tree_id", "lft"]
        indexes = [
            models.Index(fields=["kind"], name="location_kind_idx"),
            models.Index(fields=["is_active"], name="location_is_active_idx"),
            models.Index(fields=["city"], name="location_city_idx"),
        ]

    def __str__(self) -> str:
        if self.parent_id:
            return f"{self.parent.name} / {self.name}"
        return self.name

    @property
    def full_address(self) -> str:
        parts = [self.street, self.city, self.state, self.zip_code, self.country]
        return ", ".join(part for part in parts if part)

    @property
    def capacity_usage(self) -> int:
        """Used capacity as a rounded percentage, 0 when capacity is unlimited."""
        if not self.capacity_total:
            return 0
        return round(self.capacity_used / self.capacity_total * 100)

    @property
    def is_available(self) -> bool:
        if not self.is_active:
            return False
        if not self.capacity_total:
            return True
        return self.capacity_used < self.capacity_total
