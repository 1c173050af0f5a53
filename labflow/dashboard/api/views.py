# labflow/dashboard/api/views.py
from __future__ import annotations

from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import serializers, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from labflow.dashboard.selectors import dashboard_stats, monthly_revenue, recent_visits, revenue_breakdown

DATE_PARAM = OpenApiParameter(
    name="date",
    type=OpenApiTypes.DATE,
    location=OpenApiParameter.QUERY,
    required=False,
    description="Day to report on (YYYY-MM-DD); defaults to today.",
)


class StatsQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


class RecentVisitsQuerySerializer(StatsQuerySerializer):
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=10)


class MonthlyRevenueQuerySerializer(StatsQuerySerializer):
    months = serializers.IntegerField(required=False, min_value=1, max_value=24, default=6)


def _query(serializer_class, request) -> dict:
    q = serializer_class(data=request.query_params)
    q.is_valid(raise_exception=True)
    data = dict(q.validated_data)
    data["date"] = data.get("date") or timezone.localdate()
    return data


class DashboardStatsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Dashboard"], parameters=[DATE_PARAM], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        q = _query(StatsQuerySerializer, request)
        return Response(dashboard_stats(q["date"]), status=status.HTTP_200_OK)


class RecentVisitsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Dashboard"],
        parameters=[
            DATE_PARAM,
            OpenApiParameter(name="limit", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    def get(self, request):
        q = _query(RecentVisitsQuerySerializer, request)
        return Response(recent_visits(q["date"], limit=q["limit"]), status=status.HTTP_200_OK)


class MonthlyRevenueView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Dashboard"],
        parameters=[
            OpenApiParameter(
                name="date",
                type=OpenApiTypes.DATE,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Any day of the last month in the series; defaults to today.",
            ),
            OpenApiParameter(name="months", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    def get(self, request):
        q = _query(MonthlyRevenueQuerySerializer, request)
        return Response(monthly_revenue(q["date"], months=q["months"]), status=status.HTTP_200_OK)


class RevenueBreakdownView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Dashboard"], parameters=[DATE_PARAM], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        q = _query(StatsQuerySerializer, request)
        return Response(revenue_breakdown(q["date"]), status=status.HTTP_200_OK)
