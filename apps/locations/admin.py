from django.contrib import admin  # type: ignore
from mptt.admin import MPTTModelAdmin  # type: ignore

from .models import Location


@admin.register(Location)
class LocationAdmin(MPTTModelAdmin):
    list_display = ("name", "kind", "city", "capacity_total", "capacity_used", "is_active")
    list_filter = ("kind", "is_active", "city")
    search_fields = ("name", "city", "description")
    readonly_fields = ("capacity_used", "created_at", "updated_at")
    exclude = ("access_code",)
