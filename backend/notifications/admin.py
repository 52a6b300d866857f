from django.contrib import admin

from .models import NotificationLog


@admin.register(NotificationLog)
class NotificationLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "event", "recipient", "booking", "status")
    list_filter = ("status", "event")
    search_fields = ("recipient", "subject")
    readonly_fields = ("event", "booking", "recipient", "subject", "status", "error", "created_at")
