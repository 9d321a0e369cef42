from rest_framework import serializers
from .models import Customer, Supplier

PARTY_FIELDS = ['id', 'name', 'email', 'phone', 'address', 'notes', 'is_active', 'created_at', 'updated_at']
PARTY_EXTRA_KWARGS = {
    'name': {'min_length': 2, 'max_length': 100},
    # Uniqueness is checked in the view so a clash returns 409
    'email': {'validators': []},
    'address': {'max_length': 500},
    'notes': {'max_length': 1000},
}


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = PARTY_FIELDS
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = PARTY_EXTRA_KWARGS

    def validate_email(self, value):
        return value.strip().lower()


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = PARTY_FIELDS
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = PARTY_EXTRA_KWARGS

    def validate_email(self, value):
        return value.strip().lower()
