from __future__ import annotations

from rest_framework import serializers

from labflow.company.models import CompanySettings


class CompanySettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompanySettings
        fields = [
            "name",
            "name_en",
            "address",
            "phone",
            "email",
            "website",
            "tax_id",
            "license",
            "updated_at",
        ]
        read_only_fields = fields


class CompanySettingsWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    name_en = serializers.CharField(max_length=255, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=64, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    website = serializers.CharField(max_length=255, required=False, allow_blank=True)
    tax_id = serializers.CharField(max_length=32, required=False, allow_blank=True)
    license = serializers.CharField(max_length=64, required=False, allow_blank=True)


class CompanySettingsSavedSerializer(serializers.Serializer):
    message = serializers.CharField()
    data = CompanySettingsSerializer()
