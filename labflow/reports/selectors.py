# labflow/reports/selectors.py
"""
Report rows for the front desk and the lab.

Report types:
  summary  - per day: visits, ordered tests, revenue
  vts      - visitor list (one row per visit, patient and vital signs)
  lab      - one row per visit with the tests ordered
  salelab  - one row per paid order with a price per item column

Every report covers ``date_from``..``date_to`` inclusive and can be narrowed
to one department (by name or by its id from ``departments()``).
"""
from __future__ import annotations

import re
from datetime import date
from decimal import Decimal

from django.db.models import Count, Max, Q, QuerySet, Sum
from django.utils import timezone

from labflow.dashboard.selectors import FREE_PAYMENT_METHODS, PAID_STATUSES
from labflow.lab.models import LabOrder, LabOrderItem
from labflow.patients.models import Patient
from labflow.visits.models import Visit

ALL_DEPARTMENTS = "all"

REPORT_SUMMARY = "summary"
REPORT_VISITORS = "vts"
REPORT_LAB = "lab"
REPORT_SALES = "salelab"
REPORT_TYPES = (REPORT_SUMMARY, REPORT_VISITORS, REPORT_LAB, REPORT_SALES)

MEDICAL_RECORDS_LIMIT = 50


def department_id(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip().lower())


def departments() -> list[dict]:
    names = (
        Visit.objects.exclude(department="")
        .values_list("department", flat=True)
        .distinct()
        .order_by("department")
    )
    out = [{"id": ALL_DEPARTMENTS, "name": "All departments"}]
    out.extend({"id": department_id(n), "name": n} for n in names if n.strip())
    return out


def _department_names(department: str | None) -> list[str] | None:
    """
    Department names matching a filter value, or None for no filter.
    """
    if not department or department == ALL_DEPARTMENTS:
        return None
    names = Visit.objects.values_list("department", flat=True).distinct()
    return [n for n in names if n == department or department_id(n) == department]


def _visits(date_from: date, date_to: date, department: str | None) -> QuerySet[Visit]:
    qs = Visit.objects.filter(visit_date__range=(date_from, date_to)).select_related("patient")
    names = _department_names(department)
    if names is not None:
        qs = qs.filter(department__in=names)
    return qs


def _paid_orders(date_from: date, date_to: date, department: str | None) -> QuerySet[LabOrder]:
    qs = LabOrder.objects.filter(
        order_date__date__range=(date_from, date_to),
        status__in=PAID_STATUSES,
    ).select_related("visit", "visit__patient")
    names = _department_names(department)
    if names is not None:
        qs = qs.filter(visit__department__in=names)
    return qs


def _is_free(order: LabOrder) -> bool:
    return order.payment_method in FREE_PAYMENT_METHODS


def _be_date(value: date) -> str:
    # dd/mm/yyyy in the Buddhist era, as printed on Thai receipts
    return f"{value.day:02d}/{value.month:02d}/{value.year + 543}"


def _patient_columns(patient: Patient) -> dict:
    return {
        "ln": patient.ln,
        "id_card": patient.id_card,
        "title": patient.title,
        "first_name": patient.first_name,
        "last_name": patient.last_name,
        "gender": patient.gender,
        "age": patient.age,
    }


def summary_report(date_from: date, date_to: date, department: str | None = None) -> dict:
    visits = _visits(date_from, date_to, department)
    orders = list(_paid_orders(date_from, date_to, department).annotate(n_items=Count("items")))

    by_day: dict[date, dict] = {}

    def day_row(day: date) -> dict:
        return by_day.setdefault(day, {"date": day, "patients": 0, "tests": 0, "revenue": Decimal("0")})

    for row in visits.values("visit_date").annotate(n=Count("id")):
        day_row(row["visit_date"])["patients"] = row["n"]

    for o in orders:
        row = day_row(timezone.localtime(o.order_date).date())
        row["tests"] += o.n_items
        if not _is_free(o):
            row["revenue"] += o.total_amount

    data = sorted(by_day.values(), key=lambda r: r["date"], reverse=True)
    return {
        "stats": {
            "patients": sum(r["patients"] for r in data),
            "tests": sum(r["tests"] for r in data),
            "revenue": sum((r["revenue"] for r in data), Decimal("0")),
        },
        "data": data,
    }


def visitor_report(date_from: date, date_to: date, department: str | None = None) -> dict:
    data = []
    for visit in _visits(date_from, date_to, department).order_by("-visit_number"):
        vitals = visit.vital_signs or {}
        data.append(
            {
                "visit_number": visit.visit_number,
                "visit_date": visit.visit_date,
                **_patient_columns(visit.patient),
                "birth_date": visit.patient.birth_date,
                "phone_number": visit.patient.phone_number,
                "address": visit.patient.address,
                "weight": vitals.get("weight"),
                "height": vitals.get("height"),
                "blood_pressure": vitals.get("blood_pressure"),
                "pulse": vitals.get("heart_rate"),
                "department": visit.department,
                "referring_organization": visit.referring_organization,
            }
        )
    return {
        "stats": {"patients": len(data), "tests": 0, "revenue": Decimal("0")},
        "data": data,
    }


def lab_report(date_from: date, date_to: date, department: str | None = None) -> dict:
    visits = (
        _visits(date_from, date_to, department)
        .prefetch_related("lab_orders__items")
        .order_by("-visit_number")
    )

    data = []
    tests = 0
    revenue = Decimal("0")
    for visit in visits:
        orders = list(visit.lab_orders.all())
        names = sorted({item.name for o in orders for item in o.items.all()})
        tests += sum(len(o.items.all()) for o in orders)
        revenue += sum(
            (o.total_amount for o in orders if o.status in PAID_STATUSES and not _is_free(o)),
            Decimal("0"),
        )
        data.append(
            {
                "visit_number": visit.visit_number,
                "visit_date": visit.visit_date,
                **_patient_columns(visit.patient),
                "height": (visit.vital_signs or {}).get("height"),
                "tests": names,
            }
        )
    return {
        "stats": {"patients": len(data), "tests": tests, "revenue": revenue},
        "data": data,
    }


def sales_report(date_from: date, date_to: date, department: str | None = None) -> dict:
    """
    One row per paid order. ``item_columns`` lists every item code sold in
    the range (first appearance order); each row prices the items it holds.
    """
    orders = _paid_orders(date_from, date_to, department).prefetch_related("items").order_by("-order_date")

    item_columns: list[str] = []
    data = []
    tests = 0
    revenue = Decimal("0")
    for o in orders:
        items = {}
        for item in o.items.all():
            column = item.code or item.name
            if not column or item.price <= 0:
                continue
            if column not in item_columns:
                item_columns.append(column)
            items[column] = items.get(column, Decimal("0")) + item.price
        tests += len(items)
        if not _is_free(o):
            revenue += o.total_amount

        data.append(
            {
                "visit_number": o.visit.visit_number,
                **_patient_columns(o.visit.patient),
                "order_date": _be_date(timezone.localtime(o.order_date).date()),
                "payment_method": o.payment_method,
                "total_amount": o.total_amount,
                "items": items,
            }
        )
    return {
        "stats": {"patients": len(data), "tests": tests, "revenue": revenue},
        "data": data,
        "item_columns": item_columns,
    }


REPORTS = {
    REPORT_SUMMARY: summary_report,
    REPORT_VISITORS: visitor_report,
    REPORT_LAB: lab_report,
    REPORT_SALES: sales_report,
}


def report_data(report_type: str, date_from: date, date_to: date, department: str | None = None) -> dict:
    body = REPORTS[report_type](date_from, date_to, department)
    return {
        "report_type": report_type,
        "date_from": date_from,
        "date_to": date_to,
        "department": department or ALL_DEPARTMENTS,
        **body,
    }


def medical_records(q: str | None) -> list[dict]:
    """
    Patients matching ``q`` with their visit count, last visit and the tests
    of their most recent orders. Blank ``q`` matches nothing.
    """
    qv = (q or "").strip()
    if not qv:
        return []

    patients = (
        Patient.objects.filter(
            Q(first_name__icontains=qv)
            | Q(last_name__icontains=qv)
            | Q(id_card__icontains=qv)
            | Q(phone_number__icontains=qv)
            | Q(ln__icontains=qv)
        )
        .annotate(total_visits=Count("visits", distinct=True), last_visit=Max("visits__visit_date"))
        .order_by("-last_visit", "-created_at")[:MEDICAL_RECORDS_LIMIT]
    )

    out = []
    for p in patients:
        recent = (
            LabOrderItem.objects.filter(order__visit__patient=p)
            .order_by("-order__order_date")
            .values_list("name", flat=True)[:5]
        )
        out.append(
            {
                "id": p.id,
                "patient_name": p.full_name,
                "ln": p.ln,
                "id_card": p.id_card,
                "phone_number": p.phone_number,
                "address": p.address,
                "total_visits": p.total_visits,
                "last_visit": p.last_visit,
                "recent_tests": list(recent),
            }
        )
    return out
