import django.db.models.deletion
import mptt.fields
import shared.infrastructure.fields
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Location",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, verbose_name="Name")),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("warehouse", "Warehouse"),
                            ("studio", "Studio"),
                            ("office", "Office"),
                            ("storage", "Storage"),
                            ("workshop", "Workshop"),
                            ("other", "Other"),
                        ],
                        default="storage",
                        max_length=20,
                        verbose_name="Kind",
                    ),
                ),
                ("street", models.CharField(blank=True, max_length=200)),
                ("city", models.CharField(blank=True, max_length=100)),
                ("state", models.CharField(blank=True, max_length=100)),
                ("zip_code", models.CharField(blank=True, max_length=20)),
                ("country", models.CharField(blank=True, max_length=100)),
                ("description", models.TextField(blank=True, max_length=500)),
                (
                    "capacity_total",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Number of equipment items the location can hold; empty means unlimited",
                        null=True,
                    ),
                ),
                ("capacity_used", models.PositiveIntegerField(default=0)),
                ("contact_name", models.CharField(blank=True, max_length=100)),
                ("contact_email", models.EmailField(blank=True, max_length=254)),
                ("contact_phone", models.CharField(blank=True, max_length=30)),
                ("facilities", models.JSONField(blank=True, default=list)),
                ("requires_key", models.BooleanField(default=False)),
                ("requires_code", models.BooleanField(default=False)),
                (
                    "access_code",
                    shared.infrastructure.fields.EncryptedCharField(
                        blank=True,
                        help_text="Door or alarm code, stored encrypted",
                        max_length=50,
                    ),
                ),
                ("security_notes", models.TextField(blank=True, max_length=500)),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("lft", models.PositiveIntegerField(editable=False)),
                ("rght", models.PositiveIntegerField(editable=False)),
                ("tree_id", models.PositiveIntegerField(db_index=True, editable=False)),
                ("level", models.PositiveIntegerField(editable=False)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_locations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "parent",
                    mptt.fields.TreeForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="children",
                        to="locations.location",
                        verbose_name="Parent location",
                    ),
                ),
            ],
            options={
                "verbose_name": "Location",
                "verbose_name_plural": "Locations",
                "ordering": ["tree_id", "lft"],
                "indexes": [
                    models.Index(fields=["kind"], name="location_kind_idx"),
                    models.Index(fields=["is_active"], name="location_is_active_idx"),
                    models.Index(fields=["city"], name="location_city_idx"),
                ],
            },
        ),
    ]
