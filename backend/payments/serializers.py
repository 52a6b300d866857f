from rest_framework import serializers

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    booking_status = serializers.ReadOnlyField(source="booking.status")

    class Meta:
        model = Payment
        fields = (
            "id",
            "booking",
            "booking_status",
            "amount",
            "currency",
            "status",
            "transaction_id",
            "paid_at",
            "refunded_at",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class CreateIntentSerializer(serializers.Serializer):
    booking = serializers.IntegerField()
    amount_cents = serializers.IntegerField(min_value=1)
