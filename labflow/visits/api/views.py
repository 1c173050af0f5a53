# labflow/visits/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from labflow.common.api.pagination import paginate
from labflow.visits.api.serializers import (
    GeneratedNumberSerializer,
    VisitDateQuerySerializer,
    VisitCreateSerializer,
    VisitSerializer,
    VisitUpdateSerializer,
)
from labflow.visits.models import Visit
from labflow.visits.selectors import get_visit_by_number, list_visits
from labflow.visits.services import VisitService


class VisitViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    serializer_class = VisitSerializer
    queryset = Visit.objects.none()

    @extend_schema(
        tags=["Visits"],
        parameters=[
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: VisitSerializer(many=True)},
    )
    def list(self, request):
        visit_date = None
        if request.query_params.get("date"):
            q = VisitDateQuerySerializer(data={"date": request.query_params["date"]})
            q.is_valid(raise_exception=True)
            visit_date = q.validated_data["date"]

        qs = list_visits(patient_id=request.query_params.get("patient") or None, visit_date=visit_date)
        return paginate(request, qs, VisitSerializer)

    @extend_schema(tags=["Visits"], responses={200: VisitSerializer})
    def retrieve(self, request, pk=None):
        visit = Visit.objects.select_related("patient", "doctor").get(id=pk)
        return Response(VisitSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], request=VisitCreateSerializer, responses={201: VisitSerializer})
    def create(self, request):
        ser = VisitCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        visit = VisitService.create_visit(
            actor_username=request.user.get_username(),
            **ser.validated_data,
        )
        return Response(VisitSerializer(visit).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Visits"], request=VisitUpdateSerializer, responses={200: VisitSerializer})
    def partial_update(self, request, pk=None):
        ser = VisitUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        visit = VisitService.update_visit(
            actor_username=request.user.get_username(),
            visit_id=pk,
            data=ser.validated_data,
        )
        return Response(VisitSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], responses={204: None})
    def destroy(self, request, pk=None):
        VisitService.delete_visit(actor_username=request.user.get_username(), visit_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Visits"],
        parameters=[
            OpenApiParameter(
                name="date",
                type=OpenApiTypes.DATE,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Visit date (YYYY-MM-DD); defaults to today.",
            ),
        ],
        responses={200: GeneratedNumberSerializer},
    )
    @action(detail=False, methods=["get"], url_path="generate-number")
    def generate_number(self, request):
        """
        Preview the next visit number for the date's period. Not reserved.
        """
        q = VisitDateQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)

        number = VisitService.preview_number(when=q.validated_data.get("date"))
        return Response({"visit_number": number}, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], responses={200: VisitSerializer})
    @action(detail=False, methods=["get"], url_path=r"by-number/(?P<visit_number>[^/.]+)")
    def by_number(self, request, visit_number=None):
        return Response(VisitSerializer(get_visit_by_number(visit_number)).data, status=status.HTTP_200_OK)
