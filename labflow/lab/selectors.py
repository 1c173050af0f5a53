# labflow/lab/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Q, QuerySet

from labflow.lab.models import LabGroup, LabOrder, LabResult, LabTest


def search_lab_tests(*, q: str | None = None) -> QuerySet[LabTest]:
    qs = LabTest.objects.all()
    qv = (q or "").strip()
    if qv:
        qs = qs.filter(Q(code__icontains=qv) | Q(name__icontains=qv) | Q(category__icontains=qv))
    return qs.order_by("-created_at")


def search_lab_groups(*, q: str | None = None) -> QuerySet[LabGroup]:
    qs = LabGroup.objects.prefetch_related("lab_tests")
    qv = (q or "").strip()
    if qv:
        qs = qs.filter(Q(code__icontains=qv) | Q(name__icontains=qv))
    return qs.order_by("-created_at")


def list_orders(
    *,
    visit_id: UUID | None = None,
    status: str | None = None,
    q: str | None = None,
) -> QuerySet[LabOrder]:
    qs = LabOrder.objects.select_related("visit", "visit__patient").prefetch_related("items")
    if visit_id:
        qs = qs.filter(visit_id=visit_id)
    if status:
        qs = qs.filter(status=status)

    qv = (q or "").strip()
    if qv:
        qs = qs.filter(
            Q(visit__visit_number__icontains=qv)
            | Q(visit__patient__first_name__icontains=qv)
            | Q(visit__patient__last_name__icontains=qv)
            | Q(items__code__icontains=qv)
            | Q(items__name__icontains=qv)
        ).distinct()

    return qs.order_by("-order_date")


def list_results(*, order_id: UUID | None = None) -> QuerySet[LabResult]:
    qs = LabResult.objects.select_related("order", "order__visit")
    if order_id:
        qs = qs.filter(order_id=order_id)
    return qs.order_by("-created_at")
