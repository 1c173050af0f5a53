# labflow/visits/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from labflow.doctors.models import Doctor
from labflow.patients.api.serializers import PatientSerializer
from labflow.patients.models import Patient
from labflow.visits.models import Visit


class VitalSignsSerializer(serializers.Serializer):
    blood_pressure = serializers.CharField(max_length=16, required=False, allow_blank=True)
    heart_rate = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    temperature = serializers.FloatField(required=False, allow_null=True)
    weight = serializers.FloatField(required=False, allow_null=True, min_value=0)
    height = serializers.FloatField(required=False, allow_null=True, min_value=0)


class VisitCreateSerializer(serializers.Serializer):
    # optional preview from generate-number
    visit_number = serializers.CharField(max_length=16, required=False, allow_blank=True)
    patient = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all())
    doctor = serializers.PrimaryKeyRelatedField(queryset=Doctor.objects.all(), required=False, allow_null=True)
    visit_date = serializers.DateField(required=False)
    visit_time = serializers.TimeField(required=False, allow_null=True)
    department = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    referring_organization = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    vital_signs = VitalSignsSerializer(required=False)
    medical_history = serializers.CharField(required=False, allow_blank=True, default="")
    visit_details = serializers.CharField(required=False, allow_blank=True, default="")


class VisitUpdateSerializer(serializers.Serializer):
    """
    PATCH contract. Number, patient and date are immutable.
    """
    doctor = serializers.PrimaryKeyRelatedField(queryset=Doctor.objects.all(), required=False, allow_null=True)
    visit_time = serializers.TimeField(required=False, allow_null=True)
    department = serializers.CharField(max_length=128, required=False, allow_blank=True)
    referring_organization = serializers.CharField(max_length=255, required=False, allow_blank=True)
    vital_signs = VitalSignsSerializer(required=False)
    medical_history = serializers.CharField(required=False, allow_blank=True)
    visit_details = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        fixed = sorted({"visit_number", "patient", "visit_date"} & set(self.initial_data))
        if fixed:
            raise serializers.ValidationError({name: "This field cannot be changed." for name in fixed})
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class VisitSerializer(serializers.ModelSerializer):
    patient_data = PatientSerializer(source="patient", read_only=True)
    doctor_name = serializers.CharField(source="doctor.name", read_only=True, default=None)

    class Meta:
        model = Visit
        fields = [
            "id",
            "visit_number",
            "patient",
            "patient_data",
            "doctor",
            "doctor_name",
            "visit_date",
            "visit_time",
            "department",
            "referring_organization",
            "vital_signs",
            "medical_history",
            "visit_details",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class VisitDateQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


class GeneratedNumberSerializer(serializers.Serializer):
    visit_number = serializers.CharField()
