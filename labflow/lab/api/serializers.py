# labflow/lab/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from labflow.lab.models import (
    ItemType,
    LabGroup,
    LabOrder,
    LabOrderItem,
    LabResult,
    LabTest,
    OrderStatus,
)
from labflow.visits.models import Visit


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
class LabTestSerializer(serializers.ModelSerializer):
    class Meta:
        model = LabTest
        fields = ["id", "code", "name", "price", "category", "created_at", "updated_at"]
        read_only_fields = fields


class LabTestWriteSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=32)
    name = serializers.CharField(max_length=255)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    category = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")


class LabGroupSerializer(serializers.ModelSerializer):
    lab_tests = LabTestSerializer(many=True, read_only=True)

    class Meta:
        model = LabGroup
        fields = ["id", "code", "name", "price", "lab_tests", "created_at", "updated_at"]
        read_only_fields = fields


class LabGroupWriteSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=32)
    name = serializers.CharField(max_length=255)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    lab_tests = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)

    def validate_lab_tests(self, value):
        # unknown ids are dropped; at least one must remain
        tests = list(LabTest.objects.filter(id__in=value))
        if not tests:
            raise serializers.ValidationError("Select at least one valid lab test.")
        return tests


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class LabOrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = LabOrderItem
        fields = ["id", "item_type", "lab_test", "lab_group", "code", "name", "price"]
        read_only_fields = fields


class LabOrderSerializer(serializers.ModelSerializer):
    items = LabOrderItemSerializer(many=True, read_only=True)
    visit_number = serializers.CharField(source="visit.visit_number", read_only=True)
    patient_name = serializers.CharField(source="visit.patient.full_name", read_only=True)

    class Meta:
        model = LabOrder
        fields = [
            "id",
            "visit",
            "visit_number",
            "patient_name",
            "items",
            "total_amount",
            "payment_method",
            "status",
            "order_date",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class LabOrderItemWriteSerializer(serializers.Serializer):
    item_type = serializers.ChoiceField(choices=ItemType.choices)
    lab_test = serializers.PrimaryKeyRelatedField(queryset=LabTest.objects.all(), required=False, allow_null=True)
    lab_group = serializers.PrimaryKeyRelatedField(queryset=LabGroup.objects.all(), required=False, allow_null=True)
    code = serializers.CharField(max_length=32, required=False, allow_blank=True)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)

    def validate(self, attrs):
        ref = "lab_group" if attrs["item_type"] == ItemType.PACKAGE else "lab_test"
        if not attrs.get(ref) and not (attrs.get("code") and attrs.get("name")):
            raise serializers.ValidationError({ref: f"Required for {attrs['item_type']} items without code and name."})
        return attrs


class LabOrderCreateSerializer(serializers.Serializer):
    visit = serializers.PrimaryKeyRelatedField(queryset=Visit.objects.all())
    items = LabOrderItemWriteSerializer(many=True, allow_empty=False)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    payment_method = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    status = serializers.ChoiceField(choices=OrderStatus.choices, default=OrderStatus.PENDING)


class LabOrderUpdateSerializer(serializers.Serializer):
    visit = serializers.PrimaryKeyRelatedField(queryset=Visit.objects.all(), required=False)
    items = LabOrderItemWriteSerializer(many=True, allow_empty=False, required=False)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    payment_method = serializers.CharField(max_length=32, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)
    order_date = serializers.DateTimeField(required=False)


class LabOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------
class ResultEntrySerializer(serializers.Serializer):
    test_id = serializers.CharField(required=False, allow_blank=True)
    test_name = serializers.CharField()
    result = serializers.CharField(required=False, allow_blank=True)
    reference_range = serializers.CharField(required=False, allow_blank=True)
    comment = serializers.CharField(required=False, allow_blank=True)
    status = serializers.CharField(required=False, allow_blank=True)


class LabResultSerializer(serializers.ModelSerializer):
    visit_number = serializers.CharField(source="order.visit.visit_number", read_only=True)

    class Meta:
        model = LabResult
        fields = [
            "id",
            "order",
            "visit_number",
            "test_results",
            "attached_files",
            "technician",
            "notes",
            "result_date",
            "created_at",
        ]
        read_only_fields = fields


class LabResultCreateSerializer(serializers.Serializer):
    order = serializers.PrimaryKeyRelatedField(queryset=LabOrder.objects.all())
    test_results = ResultEntrySerializer(many=True, allow_empty=False)
    attached_files = serializers.ListField(child=serializers.DictField(), required=False, default=list)
    technician = serializers.CharField(max_length=150, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
