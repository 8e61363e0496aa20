from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

NON_NEGATIVE = [django.core.validators.MinValueValidator(Decimal("0"))]

CONDITION_CHOICES = [
    ("excellent", "Excellent"),
    ("good", "Good"),
    ("fair", "Fair"),
    ("poor", "Poor"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("equipment", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_date", models.DateField()),
                ("end_date", models.DateField(help_text="Exclusive: the equipment is free again on this day.")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("active", "Active"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("daily_rate", models.DecimalField(decimal_places=2, max_digits=10, validators=NON_NEGATIVE)),
                (
                    "weekly_rate",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=NON_NEGATIVE),
                ),
                (
                    "monthly_rate",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=NON_NEGATIVE),
                ),
                (
                    "total_cost",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        editable=False,
                        help_text="Derived from dates and rates on every save.",
                        max_digits=12,
                    ),
                ),
                ("purpose", models.CharField(blank=True, max_length=500)),
                ("project", models.CharField(blank=True, max_length=200)),
                ("location_note", models.CharField(blank=True, max_length=200)),
                ("notes", models.TextField(blank=True, max_length=1000)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("check_out_date", models.DateTimeField(blank=True, null=True)),
                (
                    "check_out_condition",
                    models.CharField(choices=CONDITION_CHOICES, default="good", max_length=20),
                ),
                ("check_in_date", models.DateTimeField(blank=True, null=True)),
                ("check_in_condition", models.CharField(blank=True, choices=CONDITION_CHOICES, max_length=20)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.CharField(blank=True, max_length=500)),
                (
                    "deposit",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0.00"), max_digits=10, validators=NON_NEGATIVE
                    ),
                ),
                ("deposit_returned", models.BooleanField(default=False)),
                ("deposit_return_date", models.DateTimeField(blank=True, null=True)),
                ("has_damage", models.BooleanField(default=False)),
                ("damage_description", models.TextField(blank=True, max_length=1000)),
                (
                    "repair_cost",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0.00"), max_digits=10, validators=NON_NEGATIVE
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "equipment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="equipment.equipment",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="approved_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "checked_out_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="checked_out_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "checked_in_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="checked_in_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "cancelled_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="cancelled_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_date__gt=models.F("start_date")),
                        name="booking_valid_dates",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["equipment", "start_date", "end_date"], name="booking_equipment_dates_idx"),
                    models.Index(fields=["status"], name="booking_status_idx"),
                    models.Index(fields=["user"], name="booking_user_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BookingReminder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(
                        choices=[("checkout", "Checkout"), ("return", "Return"), ("overdue", "Overdue")],
                        max_length=20,
                    ),
                ),
                ("sent_to", models.EmailField(max_length=254)),
                ("sent_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("sent_on", models.DateField(editable=False)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reminders",
                        to="bookings.booking",
                    ),
                ),
            ],
            options={
                "ordering": ["-sent_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["booking", "kind", "sent_on"],
                        name="booking_reminder_once_per_day",
                    ),
                ],
            },
        ),
    ]
