"""Serializers for booking-related API endpoints."""

from __future__ import annotations

from rest_framework import serializers

from .models import Booking, BookingEvent


class BookingSerializer(serializers.ModelSerializer):
    """Serialize Booking instances for staff and public responses."""

    vehicle_label = serializers.SerializerMethodField()
    pickup_location_name = serializers.ReadOnlyField(source="pickup_location.name")
    return_location_name = serializers.ReadOnlyField(source="return_location.name")
    approved_by = serializers.PrimaryKeyRelatedField(read_only=True)
    status_label = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Booking
        fields = (
            "id",
            "status",
            "status_label",
            "vehicle",
            "vehicle_label",
            "pickup_location",
            "pickup_location_name",
            "return_location",
            "return_location_name",
            "start_at",
            "end_at",
            "actual_return_at",
            "total_price",
            "deposit_amount",
            "notes",
            "approved_by",
            "guest_name",
            "guest_phone",
            "guest_email",
            "stripe_payment_id",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields

    def get_vehicle_label(self, booking: Booking) -> str:
        vehicle = booking.vehicle
        return f"{vehicle.year} {vehicle.make} {vehicle.model}"


class BookingCreateSerializer(serializers.Serializer):
    """Public booking submission; the engine performs the real validation."""

    vehicle = serializers.IntegerField()
    pickup_location = serializers.IntegerField()
    return_location = serializers.IntegerField()
    start_at = serializers.DateTimeField()
    end_at = serializers.DateTimeField()
    total_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    deposit_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    guest_name = serializers.CharField(max_length=120, required=False, allow_blank=True)
    guest_phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    guest_email = serializers.EmailField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def to_service_kwargs(self) -> dict:
        data = self.validated_data
        return {
            "vehicle_id": data["vehicle"],
            "pickup_location_id": data["pickup_location"],
            "return_location_id": data["return_location"],
            "start_at": data["start_at"],
            "end_at": data["end_at"],
            "total_price": data["total_price"],
            "deposit_amount": data["deposit_amount"],
            "guest_name": data.get("guest_name", ""),
            "guest_phone": data.get("guest_phone", ""),
            "guest_email": data.get("guest_email", ""),
            "notes": data.get("notes", ""),
        }


class BookingDecisionSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True)


class BookingStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)
    notes = serializers.CharField(required=False, allow_blank=True)


class BookingCompleteSerializer(serializers.Serializer):
    actual_return_at = serializers.DateTimeField(required=False, allow_null=True)


class BookingEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingEvent
        fields = ("id", "type", "payload", "actor", "created_at")
        read_only_fields = fields
