from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("id", "booking", "amount", "currency", "status", "transaction_id", "paid_at")
    list_filter = ("status",)
    search_fields = ("transaction_id",)
    readonly_fields = ("status", "transaction_id", "paid_at", "refunded_at", "created_at")

    def has_delete_permission(self, request, obj=None):
        return False
