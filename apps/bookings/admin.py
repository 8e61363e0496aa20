from django.contrib import admin  # type: ignore

from .models import Booking, BookingReminder


class BookingReminderInline(admin.TabularInline):
    model = BookingReminder
    extra = 0
    readonly_fields = ("kind", "sent_to", "sent_at", "sent_on")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "equipment", "user", "start_date", "end_date", "status", "total_cost")
    list_filter = ("status", "has_damage", "deposit_returned")
    search_fields = ("equipment__name", "equipment__serial_number", "user__email", "purpose", "project")
    date_hierarchy = "start_date"
    readonly_fields = (
        "status",
        "total_cost",
        "approved_by",
        "approved_at",
        "checked_out_by",
        "check_out_date",
        "checked_in_by",
        "check_in_date",
        "cancelled_by",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    inlines = [BookingReminderInline]
