"""Equipment catalogue models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.value_objects import RentalRates

NON_NEGATIVE = [MinValueValidator(Decimal("0"))]


class Equipment(models.Model):
    """A single rentable item, identified by its serial number."""

    class Category(models.TextChoices):
        CAMERA = "camera", "Camera"
        LENS = "lens", "Lens"
        LIGHTING = "lighting", "Lighting"
        AUDIO = "audio", "Audio"
        TRIPOD = "tripod", "Tripod"
        GRIP = "grip", "Grip"
        MONITOR = "monitor", "Monitor"
        COMPUTER = "computer", "Computer"
        CABLE = "cable", "Cable"
        ACCESSORY = "accessory", "Accessory"
        OTHER = "other", "Other"

    class Status(models.TextChoices):
        AVAILABLE = "available", "Available"
        CHECKED_OUT = "checked-out", "Checked out"
        MAINTENANCE = "maintenance", "Maintenance"
        DAMAGED = "damaged", "Damaged"
        LOST = "lost", "Lost"

    OUT_OF_SERVICE_STATUSES = (Status.MAINTENANCE, Status.DAMAGED, Status.LOST)

    name = models.CharField(max_length=100)
    category = models.CharField(max_length=20, choices=Category.choices)
    brand = models.CharField(max_length=50)
    model = models.CharField(max_length=50)
    serial_number = models.CharField(max_length=100, unique=True)
    description = models.TextField(max_length=1000, blank=True)
    specifications = models.JSONField(default=dict, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.AVAILABLE,
    )
    location = models.ForeignKey(
        "locations.Location",
        on_delete=models.PROTECT,
        related_name="equipment",
    )
    qr_code = models.CharField(max_length=255, unique=True, blank=True)

    purchase_date = models.DateField(null=True, blank=True)
    purchase_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, validators=NON_NEGATIVE
    )
    current_value = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True, validators=NON_NEGATIVE
    )

    daily_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=NON_NEGATIVE)
    weekly_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=NON_NEGATIVE)
    monthly_rate = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=NON_NEGATIVE)

    tags = models.JSONField(default=list, blank=True)
    notes = models.TextField(max_length=1000, blank=True)
    is_active = models.BooleanField(default=True)

    last_checked_out = models.DateTimeField(null=True, blank=True)
    last_checked_in = models.DateTimeField(null=True, blank=True)
    total_rentals = models.PositiveIntegerField(default=0)
    total_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_equipment",
    )
    last_modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="modified_equipment",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Equipment"
        verbose_name_plural = "Equipment"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="equipment_status_idx"),
            models.Index(fields=["category"], name="equipment_category_idx"),
            models.Index(fields=["brand", "model"], name="equipment_brand_model_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.serial_number})"

    def save(self, *args, **kwargs):  # type: ignore
        self.serial_number = (self.serial_number or "").strip().upper()
        self.tags = [str(tag).strip().lower() for tag in (self.tags or []) if str(tag).strip()]
        if not self.qr_code:
            self.qr_code = f"EQ-{self.serial_number}-{int(timezone.now().timestamp() * 1000)}"
        super().save(*args, **kwargs)

    @property
    def full_name(self) -> str:
        return f"{self.brand} {self.model} - {self.name}"

    @property
    def is_available(self) -> bool:
        return self.status == self.Status.AVAILABLE

    @property
    def is_out_of_service(self) -> bool:
        return self.status in self.OUT_OF_SERVICE_STATUSES

    @property
    def age(self) -> int | None:
        """Whole years since purchase."""
        if not self.purchase_date:
            return None
        return int((date.today() - self.purchase_date).days / 365.25)

    @property
    def rental_rates(self) -> RentalRates:
        return RentalRates(
            daily=self.daily_rate,
            weekly=self.weekly_rate or None,
            monthly=self.monthly_rate or None,
        )


class MaintenanceRecord(models.Model):
    """One service, repair or inspection performed on an item."""

    equipment = models.ForeignKey(
        Equipment,
        on_delete=models.CASCADE,
        related_name="maintenance_records",
    )
    date = models.DateField(default=date.today)
    description = models.TextField(max_length=1000)
    cost = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=NON_NEGATIVE)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="maintenance_records",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-created_at"]

    def __str__(self) -> str:
        return f"{self.equipment.serial_number} @ {self.date}"
