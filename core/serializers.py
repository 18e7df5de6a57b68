"""
Core App Serializers - Admin User Management & Sign-in
"""

import logging
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password

from .models import normalize_phone

User = get_user_model()
auth_logger = logging.getLogger('logitrack.auth')


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model (read operations)."""

    class Meta:
        model = User
        fields = [
            'id', 'phone_number', 'email', 'full_name', 'role',
            'permissions', 'is_active', 'last_login', 'date_joined'
        ]
        read_only_fields = ['id', 'last_login', 'date_joined']


class UserCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating backoffice accounts."""

    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password]
    )

    class Meta:
        model = User
        fields = ['phone_number', 'password', 'email', 'full_name', 'role']

    def validate_phone_number(self, value):
        try:
            phone = normalize_phone(value)
        except ValueError as e:
            raise serializers.ValidationError(str(e))
        if User.objects.filter(phone_number=phone).exists():
            raise serializers.ValidationError("Ce numéro est déjà utilisé.")
        return phone

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)


class PhoneTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Password sign-in keyed by the phone-derived identifier.

    The submitted phone number is normalized before authentication so
    `07 07 00 00 01` and `+2250707000001` reach the same account.
    """

    def validate(self, attrs):
        raw = attrs.get(self.username_field, '')
        try:
            attrs[self.username_field] = normalize_phone(raw)
        except ValueError:
            auth_logger.warning(f"[AUTH] Sign-in rejected, malformed phone: {raw!r}")
            raise serializers.ValidationError({'phone_number': "Numéro de téléphone invalide."})

        try:
            data = super().validate(attrs)
        except Exception:
            auth_logger.warning(f"[AUTH] Failed sign-in for {attrs[self.username_field]}")
            raise

        if not self.user.is_backoffice:
            auth_logger.warning(f"[AUTH] Non-backoffice account refused: {self.user.phone_number}")
            raise serializers.ValidationError({'detail': "Accès réservé au backoffice."})

        data['user'] = UserSerializer(self.user).data
        auth_logger.info(f"[AUTH] Signed in: {self.user.phone_number}")
        return data
