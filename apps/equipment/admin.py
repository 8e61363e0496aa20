from django.contrib import admin  # type: ignore

from .models import Equipment, MaintenanceRecord


class MaintenanceRecordInline(admin.TabularInline):
    model = MaintenanceRecord
    extra = 0


@admin.register(Equipment)
class EquipmentAdmin(admin.ModelAdmin):
    list_display = ("name", "brand", "model", "serial_number", "category", "status", "location", "is_active")
    list_filter = ("status", "category", "is_active", "location")
    search_fields = ("name", "brand", "model", "serial_number", "qr_code")
    readonly_fields = (
        "qr_code",
        "last_checked_out",
        "last_checked_in",
        "total_rentals",
        "total_revenue",
        "created_at",
        "updated_at",
    )
    inlines = [MaintenanceRecordInline]


@admin.register(MaintenanceRecord)
class MaintenanceRecordAdmin(admin.ModelAdmin):
    list_display = ("equipment", "date", "cost", "performed_by")
    list_filter = ("date",)
    search_fields = ("equipment__serial_number", "description")
