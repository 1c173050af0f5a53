from __future__ import annotations

from rest_framework import serializers

from labflow.doctors.models import Doctor


class DoctorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Doctor
        fields = ["id", "name", "license_number", "created_at", "updated_at"]
        read_only_fields = fields


class DoctorWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    license_number = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)


class FindOrCreateDoctorSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    license_number = serializers.CharField(max_length=64)
