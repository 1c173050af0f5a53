# labflow/patients/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from labflow.patients.models import Patient


class PatientCreateSerializer(serializers.Serializer):
    # optional preview from generate-ln; the server decides the final value
    ln = serializers.CharField(max_length=16, required=False, allow_blank=True)
    id_card = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    title = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    gender = serializers.CharField(max_length=16, required=False, allow_blank=True, default="")
    birth_date = serializers.DateField(required=False, allow_null=True)
    age = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=200)
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    address = serializers.CharField(required=False, allow_blank=True, default="")


class PatientUpdateSerializer(serializers.Serializer):
    """
    Partial update contract (PATCH). ``ln`` is immutable and rejected.
    """
    id_card = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    title = serializers.CharField(max_length=32, required=False, allow_blank=True)
    first_name = serializers.CharField(max_length=150, required=False)
    last_name = serializers.CharField(max_length=150, required=False)
    gender = serializers.CharField(max_length=16, required=False, allow_blank=True)
    birth_date = serializers.DateField(required=False, allow_null=True)
    age = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=200)
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if "ln" in self.initial_data:
            raise serializers.ValidationError({"ln": "LN cannot be changed."})
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class PatientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Patient
        fields = [
            "id",
            "ln",
            "id_card",
            "title",
            "first_name",
            "last_name",
            "gender",
            "birth_date",
            "age",
            "phone_number",
            "address",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class GeneratedLNSerializer(serializers.Serializer):
    ln = serializers.CharField()
