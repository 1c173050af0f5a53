from datetime import datetime, time
from decimal import Decimal

import pytest
from django.utils import timezone

from labflow.dashboard.selectors import payment_bucket
from labflow.lab.models import LabOrder, OrderStatus
from labflow.lab.services import LabOrderService

pytestmark = pytest.mark.django_db


def order(visit, lab_test, *, on, payment_method="cash", status=OrderStatus.COMPLETED, total=None):
    o = LabOrderService.create_order(
        actor_username="tech1",
        visit=visit,
        items=[{"item_type": "individual", "lab_test": lab_test}],
        total_amount=total,
        payment_method=payment_method,
        status=status,
    )
    LabOrder.objects.filter(id=o.id).update(order_date=timezone.make_aware(on))
    return o


@pytest.mark.parametrize(
    "method,bucket",
    [
        ("cash", "cash"),
        ("เงินสด", "cash"),
        ("Credit_Card", "credit_card"),
        ("โอนเงิน", "bank_transfer"),
        ("สปสช.", "insurance"),
        ("FREE", "free"),
        ("voucher", "other"),
        ("", "other"),
    ],
)
def test_payment_bucket(method, bucket):
    assert payment_bucket(method) == bucket


def test_revenue_breakdown(auth_client, visit, lab_test):
    day = datetime(2024, 3, 15, 10, 0)
    order(visit, lab_test, on=day)
    order(visit, lab_test, on=day, payment_method="transfer", total=Decimal("200.00"))
    order(visit, lab_test, on=day, payment_method="free")
    order(visit, lab_test, on=day, status=OrderStatus.CANCELLED, total=Decimal("90.00"))
    order(visit, lab_test, on=day, status=OrderStatus.PENDING)
    order(visit, lab_test, on=datetime(2024, 3, 14, 10, 0))

    r = auth_client.get("/api/v1/dashboard/revenue-breakdown/", {"date": "2024-03-15"})

    assert r.status_code == 200, r.data
    buckets = r.data["buckets"]
    assert buckets["cash"] == {"amount": Decimal("150.00"), "count": 1}
    assert buckets["bank_transfer"] == {"amount": Decimal("200.00"), "count": 1}
    assert buckets["free"] == {"amount": Decimal("150.00"), "count": 1}
    assert buckets["insurance"]["count"] == 0
    assert r.data["total"] == Decimal("350.00")
    assert r.data["cancelled"] == Decimal("90.00")


def test_monthly_revenue_series(auth_client, visit, lab_test):
    order(visit, lab_test, on=datetime(2024, 1, 10, 10, 0))
    order(visit, lab_test, on=datetime(2024, 3, 1, 10, 0), total=Decimal("40.00"))
    order(visit, lab_test, on=datetime(2024, 3, 15, 10, 0), payment_method="free")
    order(visit, lab_test, on=datetime(2024, 3, 16, 10, 0), status=OrderStatus.PENDING)

    r = auth_client.get("/api/v1/dashboard/monthly-revenue/", {"date": "2024-03-20", "months": 3})

    assert r.status_code == 200, r.data
    assert r.data == [
        {"month": "2024-01", "revenue": Decimal("150.00")},
        {"month": "2024-02", "revenue": Decimal("0")},
        {"month": "2024-03", "revenue": Decimal("40.00")},
    ]


def test_monthly_revenue_crosses_year(auth_client):
    r = auth_client.get("/api/v1/dashboard/monthly-revenue/", {"date": "2024-02-01", "months": 3})

    assert [m["month"] for m in r.data] == ["2023-12", "2024-01", "2024-02"]


def test_monthly_revenue_rejects_too_many_months(auth_client):
    assert auth_client.get("/api/v1/dashboard/monthly-revenue/", {"months": 100}).status_code == 400


def test_recent_visits(auth_client, visit, lab_test):
    from labflow.visits.models import Visit

    Visit.objects.filter(id=visit.id).update(visit_time=time(8, 45))
    order(visit, lab_test, on=datetime(2024, 3, 15, 9, 0), status=OrderStatus.PROCESS)

    r = auth_client.get("/api/v1/dashboard/recent-visits/", {"date": "2024-03-15"})

    assert r.status_code == 200, r.data
    assert len(r.data) == 1
    row = r.data[0]
    assert row["visit_number"] == visit.visit_number
    assert row["patient_name"] == "Malee Suksan"
    assert row["tests"] == ["Complete blood count"]
    assert row["status"] == OrderStatus.PROCESS
    assert row["time"] == "08:45"


def test_recent_visits_without_orders_are_pending(auth_client, visit):
    r = auth_client.get("/api/v1/dashboard/recent-visits/", {"date": "2024-03-15", "limit": 5})

    assert r.data[0]["status"] == OrderStatus.PENDING
    assert r.data[0]["tests"] == []


def test_recent_visits_other_day_is_empty(auth_client, visit):
    assert auth_client.get("/api/v1/dashboard/recent-visits/", {"date": "2024-03-16"}).data == []
