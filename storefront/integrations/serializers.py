from decimal import Decimal

from rest_framework import serializers

from storefront.core.validators import PHONE_VALIDATOR, PIN_CODE_VALIDATOR


class PaymentOrderSerializer(serializers.Serializer):
    order_id = serializers.CharField(max_length=50)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    customer_id = serializers.CharField(max_length=50)
    customer_phone = serializers.CharField(validators=[PHONE_VALIDATOR])
    return_url = serializers.URLField(required=False)


class PaymentCallbackSerializer(serializers.Serializer):
    """Gateway callback body; field names are the gateway's"""
    orderId = serializers.CharField()
    orderAmount = serializers.DecimalField(max_digits=12, decimal_places=2)
    paymentStatus = serializers.CharField()
    transactionId = serializers.CharField(required=False, allow_blank=True)


class ShiprocketLoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()


class PickupLocationSerializer(serializers.Serializer):
    pickup_location = serializers.CharField(max_length=36)
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    phone = serializers.CharField(validators=[PHONE_VALIDATOR])
    address = serializers.CharField(max_length=200)
    address_2 = serializers.CharField(max_length=200, required=False, allow_blank=True)
    city = serializers.CharField(max_length=50)
    state = serializers.CharField(max_length=50)
    country = serializers.CharField(max_length=50)
    pin_code = serializers.CharField(validators=[PIN_CODE_VALIDATOR])
