# labflow/lab/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from labflow.common.api.pagination import paginate
from labflow.lab.api.serializers import (
    LabGroupSerializer,
    LabGroupWriteSerializer,
    LabOrderCreateSerializer,
    LabOrderSerializer,
    LabOrderStatusSerializer,
    LabOrderUpdateSerializer,
    LabResultCreateSerializer,
    LabResultSerializer,
    LabTestSerializer,
    LabTestWriteSerializer,
)
from labflow.lab.models import LabGroup, LabOrder, LabResult, LabTest
from labflow.lab.selectors import list_orders, list_results, search_lab_groups, search_lab_tests
from labflow.lab.services import LabCatalogService, LabOrderService, LabResultService

Q_PARAM = OpenApiParameter(
    name="q",
    type=OpenApiTypes.STR,
    location=OpenApiParameter.QUERY,
    required=False,
    description="Search code or name.",
)


class LabTestViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    serializer_class = LabTestSerializer
    queryset = LabTest.objects.none()

    @extend_schema(tags=["Lab catalog"], parameters=[Q_PARAM], responses={200: LabTestSerializer(many=True)})
    def list(self, request):
        qs = search_lab_tests(q=request.query_params.get("q", ""))
        return Response(LabTestSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab catalog"], responses={200: LabTestSerializer})
    def retrieve(self, request, pk=None):
        return Response(LabTestSerializer(LabTest.objects.get(id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab catalog"], request=LabTestWriteSerializer, responses={201: LabTestSerializer})
    def create(self, request):
        ser = LabTestWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        test = LabCatalogService.create_test(actor_username=request.user.get_username(), **ser.validated_data)
        return Response(LabTestSerializer(test).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Lab catalog"], request=LabTestWriteSerializer, responses={200: LabTestSerializer})
    def partial_update(self, request, pk=None):
        ser = LabTestWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        test = LabCatalogService.update_test(
            actor_username=request.user.get_username(),
            test_id=pk,
            data=ser.validated_data,
        )
        return Response(LabTestSerializer(test).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab catalog"], responses={204: None})
    def destroy(self, request, pk=None):
        LabCatalogService.delete_test(actor_username=request.user.get_username(), test_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LabGroupViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    serializer_class = LabGroupSerializer
    queryset = LabGroup.objects.none()

    @extend_schema(tags=["Lab catalog"], parameters=[Q_PARAM], responses={200: LabGroupSerializer(many=True)})
    def list(self, request):
        qs = search_lab_groups(q=request.query_params.get("q", ""))
        return Response(LabGroupSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab catalog"], responses={200: LabGroupSerializer})
    def retrieve(self, request, pk=None):
        group = LabGroup.objects.prefetch_related("lab_tests").get(id=pk)
        return Response(LabGroupSerializer(group).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab catalog"], request=LabGroupWriteSerializer, responses={201: LabGroupSerializer})
    def create(self, request):
        ser = LabGroupWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        group = LabCatalogService.create_group(actor_username=request.user.get_username(), **ser.validated_data)
        return Response(LabGroupSerializer(group).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Lab catalog"], request=LabGroupWriteSerializer, responses={200: LabGroupSerializer})
    def partial_update(self, request, pk=None):
        ser = LabGroupWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        group = LabCatalogService.update_group(
            actor_username=request.user.get_username(),
            group_id=pk,
            data=ser.validated_data,
        )
        return Response(LabGroupSerializer(group).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab catalog"], responses={204: None})
    def destroy(self, request, pk=None):
        LabCatalogService.delete_group(actor_username=request.user.get_username(), group_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LabOrderViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    serializer_class = LabOrderSerializer
    queryset = LabOrder.objects.none()

    @extend_schema(
        tags=["Lab orders"],
        parameters=[
            OpenApiParameter(name="visit", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="q",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Search visit number, patient name or item code/name.",
            ),
        ],
        responses={200: LabOrderSerializer(many=True)},
    )
    def list(self, request):
        qs = list_orders(
            visit_id=request.query_params.get("visit") or None,
            status=request.query_params.get("status") or None,
            q=request.query_params.get("q", ""),
        )
        return paginate(request, qs, LabOrderSerializer)

    @extend_schema(tags=["Lab orders"], responses={200: LabOrderSerializer})
    def retrieve(self, request, pk=None):
        order = list_orders().get(id=pk)
        return Response(LabOrderSerializer(order).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab orders"], request=LabOrderCreateSerializer, responses={201: LabOrderSerializer})
    def create(self, request):
        ser = LabOrderCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        order = LabOrderService.create_order(actor_username=request.user.get_username(), **ser.validated_data)
        return Response(LabOrderSerializer(list_orders().get(id=order.id)).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Lab orders"], request=LabOrderUpdateSerializer, responses={200: LabOrderSerializer})
    def update(self, request, pk=None):
        ser = LabOrderUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        order = LabOrderService.update_order(
            actor_username=request.user.get_username(),
            order_id=pk,
            data=ser.validated_data,
        )
        return Response(LabOrderSerializer(list_orders().get(id=order.id)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab orders"], request=LabOrderUpdateSerializer, responses={200: LabOrderSerializer})
    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    @extend_schema(tags=["Lab orders"], responses={204: None})
    def destroy(self, request, pk=None):
        LabOrderService.delete_order(actor_username=request.user.get_username(), order_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["Lab orders"], request=LabOrderStatusSerializer, responses={200: LabOrderSerializer})
    @action(detail=True, methods=["post", "put"], url_path="status")
    def set_status(self, request, pk=None):
        ser = LabOrderStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        order = LabOrderService.set_status(
            actor_username=request.user.get_username(),
            order_id=pk,
            status=ser.validated_data["status"],
        )
        return Response(LabOrderSerializer(list_orders().get(id=order.id)).data, status=status.HTTP_200_OK)


class LabResultViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    serializer_class = LabResultSerializer
    queryset = LabResult.objects.none()

    @extend_schema(
        tags=["Lab results"],
        parameters=[
            OpenApiParameter(name="order", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: LabResultSerializer(many=True)},
    )
    def list(self, request):
        qs = list_results(order_id=request.query_params.get("order") or None)
        return paginate(request, qs, LabResultSerializer)

    @extend_schema(tags=["Lab results"], responses={200: LabResultSerializer})
    def retrieve(self, request, pk=None):
        return Response(LabResultSerializer(list_results().get(id=pk)).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab results"], request=LabResultCreateSerializer, responses={201: LabResultSerializer})
    def create(self, request):
        ser = LabResultCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = LabResultService.create_result(actor_username=request.user.get_username(), **ser.validated_data)
        return Response(LabResultSerializer(result).data, status=status.HTTP_201_CREATED)
