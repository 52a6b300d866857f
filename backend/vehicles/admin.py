from django.contrib import admin

from .models import Location, Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ("license_plate", "make", "model", "year", "daily_rate", "status", "location")
    list_filter = ("status", "location")
    search_fields = ("license_plate", "vin", "make", "model")


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("name", "city", "is_active")
    list_filter = ("is_active",)
