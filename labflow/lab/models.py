# labflow/lab/models.py

from django.db import models
from django.utils import timezone

from labflow.common.models import UUIDModel


class LabTest(UUIDModel):
    """
    Catalog entry. Codes are not unique: clinics reuse them across price lists.
    """
    code = models.CharField(max_length=32, db_index=True)
    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    category = models.CharField(max_length=128, blank=True)

    class Meta:
        db_table = "lab_test"

    def __str__(self) -> str:
        return f"{self.code} {self.name}"


class LabGroup(UUIDModel):
    """
    A package of tests sold at one price.
    """
    code = models.CharField(max_length=32, db_index=True)
    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    lab_tests = models.ManyToManyField(LabTest, related_name="groups")

    class Meta:
        db_table = "lab_group"

    def __str__(self) -> str:
        return f"{self.code} {self.name}"


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESS = "process", "In process"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class ItemType(models.TextChoices):
    INDIVIDUAL = "individual", "Individual test"
    PACKAGE = "package", "Package"


class LabOrder(UUIDModel):
    visit = models.ForeignKey("visits.Visit", on_delete=models.PROTECT, related_name="lab_orders")
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    payment_method = models.CharField(max_length=32, default="cash")
    status = models.CharField(max_length=16, choices=OrderStatus.choices, default=OrderStatus.PENDING)
    order_date = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "lab_order"
        indexes = [
            models.Index(fields=["status", "order_date"]),
        ]


class LabOrderItem(UUIDModel):
    """
    Ordered line. code/name/price are copied at order time so later catalog
    edits do not rewrite billed orders.
    """
    order = models.ForeignKey(LabOrder, on_delete=models.CASCADE, related_name="items")
    item_type = models.CharField(max_length=16, choices=ItemType.choices)
    lab_test = models.ForeignKey(LabTest, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    lab_group = models.ForeignKey(LabGroup, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")

    code = models.CharField(max_length=32)
    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    class Meta:
        db_table = "lab_order_item"


class LabResult(UUIDModel):
    order = models.ForeignKey(LabOrder, on_delete=models.CASCADE, related_name="results")

    # [{"test_id", "test_name", "result", "reference_range", "comment", "status"}]
    test_results = models.JSONField(default=list)
    attached_files = models.JSONField(default=list, blank=True)
    technician = models.CharField(max_length=150, blank=True)
    notes = models.TextField(blank=True)
    result_date = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "lab_result"
