from rest_framework import serializers

from .models import Location, Vehicle


class LocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Location
        fields = ("id", "name", "address", "city", "is_active")
        read_only_fields = fields


class VehicleSerializer(serializers.ModelSerializer):
    location = LocationSerializer(read_only=True)
    status_label = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Vehicle
        fields = (
            "id",
            "make",
            "model",
            "year",
            "license_plate",
            "color",
            "seats",
            "daily_rate",
            "status",
            "status_label",
            "location",
        )
        read_only_fields = fields


class AvailabilityQuerySerializer(serializers.Serializer):
    start_at = serializers.DateTimeField()
    end_at = serializers.DateTimeField()
    location = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if attrs["start_at"] >= attrs["end_at"]:
            raise serializers.ValidationError({"end_at": "Start date must be before end date."})
        return attrs


class VehicleStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Vehicle.Status.choices)
