from rest_framework import serializers

from .models import Boost


class BoostSerializer(serializers.ModelSerializer):
    identificationNumber = serializers.CharField(source="identification_number", max_length=50)
    paymentDate = serializers.DateTimeField(source="payment_date", read_only=True)
    externalReference = serializers.CharField(source="external_reference", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Boost
        fields = [
            "id",
            "identificationNumber",
            "amount",
            "fee",
            "paid",
            "paymentDate",
            "externalReference",
            "createdAt",
        ]
        # Paid status only changes through the payment callback.
        read_only_fields = ["id", "paid"]


class PayRequestSerializer(serializers.Serializer):
    """
    Input payload for starting a PayHero push.
    """

    phone = serializers.CharField(allow_blank=True)
    # Any precision; the gateway payload truncates to whole shillings.
    fee = serializers.DecimalField(max_digits=None, decimal_places=None, required=False)
    customer_name = serializers.CharField(required=False, allow_blank=True)
    boost_id = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if attrs.get("fee") is None and attrs.get("boost_id") is None:
            raise serializers.ValidationError({"fee": "This field is required."})
        return attrs
