# labflow/company/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from labflow.company.api.serializers import (
    CompanySettingsSavedSerializer,
    CompanySettingsSerializer,
    CompanySettingsWriteSerializer,
)
from labflow.company.services import CompanySettingsService, get_company_settings


class CompanySettingsView(APIView):
    """
    GET answers ``{}`` until the settings have been saved once.
    """
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Company"], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        row = get_company_settings()
        data = CompanySettingsSerializer(row).data if row is not None else {}
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Company"],
        request=CompanySettingsWriteSerializer,
        responses={200: CompanySettingsSavedSerializer},
    )
    def post(self, request):
        ser = CompanySettingsWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        row = CompanySettingsService.save(actor_username=request.user.get_username(), **ser.validated_data)
        return Response(
            {"message": "Company settings saved", "data": CompanySettingsSerializer(row).data},
            status=status.HTTP_200_OK,
        )

    put = post
