# labflow/dashboard/selectors.py
from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from django.db.models import Count, Sum
from django.utils import timezone

from labflow.lab.models import LabOrder, LabOrderItem, OrderStatus
from labflow.patients.models import Patient
from labflow.visits.models import Visit

# payment methods that bring in no revenue
FREE_PAYMENT_METHODS = ("free", "Free", "FREE", "ฟรี")

PAID_STATUSES = (OrderStatus.PROCESS, OrderStatus.COMPLETED)
OPEN_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESS)


def day_stats(day: date) -> dict:
    orders = LabOrder.objects.filter(order_date__date=day)

    revenue = (
        orders.filter(status__in=PAID_STATUSES)
        .exclude(payment_method__in=FREE_PAYMENT_METHODS)
        .aggregate(total=Sum("total_amount"))["total"]
    )

    return {
        "visits": Visit.objects.filter(visit_date=day).count(),
        "new_patients": Patient.objects.filter(created_at__date=day).count(),
        "tests": LabOrderItem.objects.filter(order__order_date__date=day).count(),
        "open_orders": orders.filter(status__in=OPEN_STATUSES).count(),
        "revenue": revenue or Decimal("0"),
    }


def orders_by_status() -> dict[str, int]:
    counts = {value: 0 for value in OrderStatus.values}
    for row in LabOrder.objects.values("status").annotate(n=Count("id")):
        counts[row["status"]] = row["n"]
    return counts


def dashboard_stats(day: date) -> dict:
    """
    Figures for ``day`` next to the day before, plus current order backlog.
    """
    return {
        "date": day,
        "today": day_stats(day),
        "yesterday": day_stats(day - timedelta(days=1)),
        "total_patients": Patient.objects.count(),
        "orders_by_status": orders_by_status(),
    }


def recent_visits(day: date, *, limit: int = 10) -> list[dict]:
    """
    Visits of ``day``, newest number first, with what was ordered and where
    the latest order stands.
    """
    visits = (
        Visit.objects.filter(visit_date=day)
        .select_related("patient")
        .prefetch_related("lab_orders__items")
        .order_by("-visit_number")[:limit]
    )

    rows = []
    for visit in visits:
        orders = sorted(visit.lab_orders.all(), key=lambda o: o.order_date, reverse=True)
        if visit.visit_time is not None:
            at = visit.visit_time
        else:
            at = timezone.localtime(visit.created_at).time()
        rows.append(
            {
                "visit_id": visit.id,
                "visit_number": visit.visit_number,
                "patient_ln": visit.patient.ln,
                "patient_name": visit.patient.full_name,
                "department": visit.department,
                "tests": [item.name for order in orders for item in order.items.all()],
                "status": orders[0].status if orders else OrderStatus.PENDING,
                "time": at.strftime("%H:%M"),
            }
        )
    return rows


def _first_of_month(day: date, months_back: int = 0) -> date:
    index = day.year * 12 + (day.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


def monthly_revenue(until: date, *, months: int = 6) -> list[dict]:
    """
    Paid, non-free revenue per calendar month, oldest first, ending with the
    month of ``until``.
    """
    paid = LabOrder.objects.filter(status__in=PAID_STATUSES).exclude(payment_method__in=FREE_PAYMENT_METHODS)

    out = []
    for back in range(months - 1, -1, -1):
        first = _first_of_month(until, back)
        total = paid.filter(
            order_date__year=first.year,
            order_date__month=first.month,
        ).aggregate(total=Sum("total_amount"))["total"]
        out.append({"month": first.strftime("%Y-%m"), "revenue": total or Decimal("0")})
    return out


# payment_method spellings seen at the counter, folded into report buckets
PAYMENT_BUCKETS = {
    "cash": ("cash", "เงินสด"),
    "credit_card": ("credit_card", "creditcard", "credit", "บัตรเครดิต", "เครดิต"),
    "bank_transfer": ("bank_transfer", "banktransfer", "transfer", "โอนเงิน"),
    "insurance": ("insurance", "ประกันสังคม", "สปสช.", "สปสช"),
    "free": ("free", "ฟรี"),
}
OTHER_BUCKET = "other"


def payment_bucket(method: str | None) -> str:
    value = (method or "").strip().lower()
    for bucket, spellings in PAYMENT_BUCKETS.items():
        if value in spellings:
            return bucket
    return OTHER_BUCKET


def revenue_breakdown(day: date) -> dict:
    """
    Paid orders of ``day`` by payment bucket. Free orders are counted but
    left out of ``total``; cancelled orders are reported on their own.
    """
    buckets = {name: {"amount": Decimal("0"), "count": 0} for name in (*PAYMENT_BUCKETS, OTHER_BUCKET)}
    orders = LabOrder.objects.filter(order_date__date=day)

    grouped = (
        orders.filter(status__in=PAID_STATUSES)
        .values("payment_method")
        .annotate(amount=Sum("total_amount"), n=Count("id"))
    )
    for row in grouped:
        bucket = buckets[payment_bucket(row["payment_method"])]
        bucket["amount"] += row["amount"] or Decimal("0")
        bucket["count"] += row["n"]

    total = sum((b["amount"] for name, b in buckets.items() if name != "free"), Decimal("0"))
    cancelled = orders.filter(status=OrderStatus.CANCELLED).aggregate(total=Sum("total_amount"))["total"]

    return {
        "date": day,
        "buckets": buckets,
        "total": total,
        "cancelled": cancelled or Decimal("0"),
    }
