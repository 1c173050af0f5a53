# labflow/doctors/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from labflow.doctors.api.serializers import (
    DoctorSerializer,
    DoctorWriteSerializer,
    FindOrCreateDoctorSerializer,
)
from labflow.doctors.models import Doctor
from labflow.doctors.services import DoctorService


class DoctorViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    serializer_class = DoctorSerializer
    queryset = Doctor.objects.none()

    @extend_schema(tags=["Doctors"], responses={200: DoctorSerializer(many=True)})
    def list(self, request):
        qs = Doctor.objects.order_by("name")
        q = request.query_params.get("q", "").strip()
        if q:
            qs = qs.filter(name__icontains=q)
        return Response(DoctorSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Doctors"], responses={200: DoctorSerializer})
    def retrieve(self, request, pk=None):
        return Response(DoctorSerializer(Doctor.objects.get(id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Doctors"], request=DoctorWriteSerializer, responses={201: DoctorSerializer})
    def create(self, request):
        ser = DoctorWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        doctor = DoctorService.create_doctor(actor_username=request.user.get_username(), **ser.validated_data)
        return Response(DoctorSerializer(doctor).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Doctors"], request=DoctorWriteSerializer, responses={200: DoctorSerializer})
    def partial_update(self, request, pk=None):
        ser = DoctorWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        doctor = DoctorService.update_doctor(
            actor_username=request.user.get_username(),
            doctor_id=pk,
            data=ser.validated_data,
        )
        return Response(DoctorSerializer(doctor).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Doctors"], responses={204: None})
    def destroy(self, request, pk=None):
        DoctorService.delete_doctor(actor_username=request.user.get_username(), doctor_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Doctors"],
        request=FindOrCreateDoctorSerializer,
        responses={200: DoctorSerializer, 201: DoctorSerializer},
    )
    @action(detail=False, methods=["post"], url_path="find-or-create")
    def find_or_create(self, request):
        ser = FindOrCreateDoctorSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        doctor, created = DoctorService.find_or_create(
            actor_username=request.user.get_username(),
            **ser.validated_data,
        )
        return Response(
            DoctorSerializer(doctor).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )
