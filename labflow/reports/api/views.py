# labflow/reports/api/views.py
from __future__ import annotations

from datetime import timedelta

from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from labflow.reports.selectors import (
    REPORT_SUMMARY,
    REPORT_TYPES,
    departments,
    medical_records,
    report_data,
)

# summary looks back a week by default; the row-level reports cover today
SUMMARY_DEFAULT_DAYS = 7


class ReportQuerySerializer(serializers.Serializer):
    report_type = serializers.ChoiceField(choices=REPORT_TYPES, required=False, default=REPORT_SUMMARY)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    department = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        today = timezone.localdate()
        date_from = attrs.get("date_from")
        date_to = attrs.get("date_to")

        if date_from is None and date_to is None:
            date_to = today
            if attrs["report_type"] == REPORT_SUMMARY:
                date_from = today - timedelta(days=SUMMARY_DEFAULT_DAYS - 1)
            else:
                date_from = today
        else:
            # one bound alone means that single day
            date_from = date_from or date_to
            date_to = date_to or date_from

        if date_from > date_to:
            raise serializers.ValidationError({"date_from": "Must be on or before date_to."})

        attrs["date_from"] = date_from
        attrs["date_to"] = date_to
        return attrs


class ReportDepartmentsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Reports"], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        return Response(departments(), status=status.HTTP_200_OK)


class ReportDataView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Reports"], parameters=[ReportQuerySerializer], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        q = ReportQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        data = q.validated_data
        return Response(
            report_data(
                data["report_type"],
                data["date_from"],
                data["date_to"],
                data["department"] or None,
            ),
            status=status.HTTP_200_OK,
        )


class MedicalRecordSearchView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Reports"],
        parameters=[
            OpenApiParameter(
                name="q",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Name, ID card, phone number or LN.",
            ),
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    def get(self, request):
        return Response(medical_records(request.query_params.get("q")), status=status.HTTP_200_OK)
