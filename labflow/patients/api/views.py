# labflow/patients/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from labflow.common.api.pagination import paginate
from labflow.patients.api.serializers import (
    GeneratedLNSerializer,
    PatientCreateSerializer,
    PatientSerializer,
    PatientUpdateSerializer,
)
from labflow.patients.models import Patient
from labflow.patients.selectors import search_patients
from labflow.patients.services import PatientService


class PatientViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    serializer_class = PatientSerializer
    queryset = Patient.objects.none()

    @extend_schema(
        tags=["Patients"],
        parameters=[
            OpenApiParameter(
                name="q",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Search first/last name, ID card or LN.",
            ),
        ],
        responses={200: PatientSerializer(many=True)},
    )
    def list(self, request):
        qs = search_patients(q=request.query_params.get("q", ""))
        return paginate(request, qs, PatientSerializer)

    @extend_schema(tags=["Patients"], responses={200: PatientSerializer})
    def retrieve(self, request, pk=None):
        patient = Patient.objects.get(id=pk)
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], request=PatientCreateSerializer, responses={201: PatientSerializer})
    def create(self, request):
        ser = PatientCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        patient = PatientService.create_patient(
            actor_username=request.user.get_username(),
            **ser.validated_data,
        )
        return Response(PatientSerializer(patient).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Patients"], request=PatientUpdateSerializer, responses={200: PatientSerializer})
    def partial_update(self, request, pk=None):
        ser = PatientUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        patient = PatientService.update_patient(
            actor_username=request.user.get_username(),
            patient_id=pk,
            data=ser.validated_data,
        )
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], responses={204: None})
    def destroy(self, request, pk=None):
        PatientService.delete_patient(actor_username=request.user.get_username(), patient_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Patients"], responses={200: GeneratedLNSerializer})
    @action(detail=False, methods=["get"], url_path="generate-ln")
    def generate_ln(self, request):
        """
        Preview the next LN for this month. Not reserved: creation may assign another.
        """
        return Response({"ln": PatientService.preview_ln()}, status=status.HTTP_200_OK)
