from django.utils.crypto import get_random_string
from rest_framework import serializers
from .models import User, AuditLog


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'phone', 'role', 'is_active', 'last_login', 'created_at', 'updated_at']
        read_only_fields = ['last_login', 'created_at', 'updated_at']


def normalize_unique_email(value, instance=None):
    """Lowercase an email and reject it if another account already uses it"""
    email = value.strip().lower()
    existing = User.objects.filter(email__iexact=email)
    if instance is not None:
        existing = existing.exclude(pk=instance.pk)
    if existing.exists():
        raise serializers.ValidationError('Email is already in use')
    return email


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=100)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)

    def validate_email(self, value):
        return value.strip().lower()


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class RefreshTokenSerializer(serializers.Serializer):
    refresh_token = serializers.CharField()


class ProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['name', 'email', 'phone']
        extra_kwargs = {
            'name': {'min_length': 2},
            'email': {'validators': []},
        }

    def validate_email(self, value):
        return normalize_unique_email(value, self.instance)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True)


class UserCreateSerializer(serializers.ModelSerializer):
    """Admin-side account creation; password is optional"""
    password = serializers.CharField(write_only=True, required=False, min_length=6)

    class Meta:
        model = User
        fields = ['name', 'email', 'role', 'phone', 'is_active', 'password']
        extra_kwargs = {
            'role': {'required': True},
            'email': {'validators': []},
        }

    def validate_email(self, value):
        return normalize_unique_email(value)

    def create(self, validated_data):
        password = validated_data.pop('password', None)
        user = User(**validated_data)
        if password:
            user.set_password(password)
        else:
            user.set_password(get_random_string(12))
        user.save()
        return user


class UserStatusSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']
