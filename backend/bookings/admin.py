from django.contrib import admin

from .models import Booking, BookingEvent


class BookingEventInline(admin.TabularInline):
    model = BookingEvent
    extra = 0
    can_delete = False
    readonly_fields = ("type", "payload", "actor", "created_at")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "vehicle", "status", "start_at", "end_at", "total_price", "created_at")
    list_filter = ("status",)
    search_fields = ("guest_name", "guest_email", "stripe_payment_id")
    readonly_fields = ("status", "stripe_payment_id", "approved_by", "created_at", "updated_at")
    inlines = [BookingEventInline]

    def has_delete_permission(self, request, obj=None):
        return False
