# labflow/iam/api/schema_serializers.py
from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers


class RegisterRequestSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")


class LoginRequestSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True, style={"input_type": "password"})


class UserSerializer(serializers.ModelSerializer):
    """
    Public view of a user. The password hash is never part of it.
    """
    phone = serializers.SerializerMethodField()

    class Meta:
        model = get_user_model()
        fields = ["id", "username", "first_name", "last_name", "phone", "is_active", "last_login", "date_joined"]
        read_only_fields = fields

    def get_phone(self, obj) -> str:
        profile = getattr(obj, "clinic_profile", None)
        return profile.phone if profile is not None else ""


class LoginResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    session_id = serializers.CharField()
    user = UserSerializer()


class RegisterResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    user = UserSerializer()


class ValidateResponseSerializer(serializers.Serializer):
    valid = serializers.BooleanField()
    user = UserSerializer()


class LogoutResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
