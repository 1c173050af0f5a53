from decimal import Decimal

import pytest

from labflow.lab.models import LabGroup, LabOrder, OrderStatus

pytestmark = pytest.mark.django_db


@pytest.fixture
def lab_group(lab_test):
    group = LabGroup.objects.create(code="PKG1", name="Checkup", price=Decimal("400.00"))
    group.lab_tests.set([lab_test])
    return group


def place_order(client, visit, items, **extra):
    payload = {"visit": str(visit.id), "items": items}
    payload.update(extra)
    return client.post("/api/v1/lab/orders/", payload, format="json")


def test_create_order_copies_catalog_and_totals(auth_client, visit, lab_test, lab_group):
    r = place_order(
        auth_client,
        visit,
        [
            {"item_type": "individual", "lab_test": str(lab_test.id)},
            {"item_type": "package", "lab_group": str(lab_group.id)},
        ],
    )

    assert r.status_code == 201, r.data
    assert r.data["status"] == "pending"
    assert r.data["payment_method"] == "cash"
    assert Decimal(r.data["total_amount"]) == Decimal("550.00")
    assert sorted(i["code"] for i in r.data["items"]) == ["CBC", "PKG1"]
    assert r.data["visit_number"] == visit.visit_number


def test_explicit_total_wins(auth_client, visit, lab_test):
    r = place_order(
        auth_client,
        visit,
        [{"item_type": "individual", "lab_test": str(lab_test.id)}],
        total_amount="0.00",
        payment_method="free",
    )

    assert Decimal(r.data["total_amount"]) == Decimal("0")


def test_order_needs_items(auth_client, visit):
    r = place_order(auth_client, visit, [])
    assert r.status_code == 400


def test_item_needs_reference_or_code(auth_client, visit):
    r = place_order(auth_client, visit, [{"item_type": "individual"}])
    assert r.status_code == 400


def test_status_transition(auth_client, visit, lab_test):
    oid = place_order(auth_client, visit, [{"item_type": "individual", "lab_test": str(lab_test.id)}]).data["id"]

    r = auth_client.post(f"/api/v1/lab/orders/{oid}/status/", {"status": "process"}, format="json")
    assert r.status_code == 200
    assert r.data["status"] == "process"

    bad = auth_client.post(f"/api/v1/lab/orders/{oid}/status/", {"status": "shipped"}, format="json")
    assert bad.status_code == 400


def test_list_filters_by_status_and_search(auth_client, visit, lab_test):
    oid = place_order(auth_client, visit, [{"item_type": "individual", "lab_test": str(lab_test.id)}]).data["id"]

    pending = auth_client.get("/api/v1/lab/orders/", {"status": "pending"})
    assert [o["id"] for o in pending.data["results"]] == [oid]

    assert auth_client.get("/api/v1/lab/orders/", {"status": "completed"}).data["count"] == 0
    assert auth_client.get("/api/v1/lab/orders/", {"q": "CBC"}).data["count"] == 1
    assert auth_client.get("/api/v1/lab/orders/", {"q": visit.visit_number}).data["count"] == 1


def test_result_completes_order(auth_client, visit, lab_test):
    oid = place_order(auth_client, visit, [{"item_type": "individual", "lab_test": str(lab_test.id)}]).data["id"]

    r = auth_client.post(
        "/api/v1/lab/results/",
        {
            "order": oid,
            "test_results": [
                {"test_id": str(lab_test.id), "test_name": "CBC", "result": "normal", "reference_range": "-"},
            ],
            "technician": "tech1",
        },
        format="json",
    )

    assert r.status_code == 201, r.data
    assert r.data["test_results"][0]["status"] == "completed"
    assert LabOrder.objects.get(id=oid).status == OrderStatus.COMPLETED

    listed = auth_client.get("/api/v1/lab/results/", {"order": oid})
    assert listed.data["count"] == 1


def test_result_requires_entries(auth_client, visit, lab_test):
    oid = place_order(auth_client, visit, [{"item_type": "individual", "lab_test": str(lab_test.id)}]).data["id"]

    r = auth_client.post("/api/v1/lab/results/", {"order": oid, "test_results": []}, format="json")

    assert r.status_code == 400
    assert LabOrder.objects.get(id=oid).status == OrderStatus.PENDING


def test_visit_with_orders_cannot_be_deleted(auth_client, visit, lab_test):
    place_order(auth_client, visit, [{"item_type": "individual", "lab_test": str(lab_test.id)}])

    r = auth_client.delete(f"/api/v1/visits/{visit.id}/")

    assert r.status_code == 409


def test_delete_order(auth_client, visit, lab_test):
    oid = place_order(auth_client, visit, [{"item_type": "individual", "lab_test": str(lab_test.id)}]).data["id"]

    assert auth_client.delete(f"/api/v1/lab/orders/{oid}/").status_code == 204
    assert not LabOrder.objects.filter(id=oid).exists()


def test_update_order_replaces_items_and_recomputes_total(auth_client, visit, lab_test, lab_group):
    order = place_order(auth_client, visit, [{"item_type": "individual", "lab_test": str(lab_test.id)}]).data

    r = auth_client.put(
        f"/api/v1/lab/orders/{order['id']}/",
        {
            "items": [
                {"item_type": "package", "lab_group": str(lab_group.id)},
                {"item_type": "individual", "code": "FBS", "name": "Fasting blood sugar", "price": "80.00"},
            ],
            "payment_method": "transfer",
            "status": "process",
        },
        format="json",
    )

    assert r.status_code == 200, r.data
    assert sorted(i["code"] for i in r.data["items"]) == ["FBS", "PKG1"]
    assert Decimal(r.data["total_amount"]) == Decimal("480.00")
    assert r.data["payment_method"] == "transfer"
    assert r.data["status"] == "process"


def test_partial_update_keeps_items_and_total(auth_client, visit, lab_test):
    order = place_order(auth_client, visit, [{"item_type": "individual", "lab_test": str(lab_test.id)}]).data

    r = auth_client.patch(f"/api/v1/lab/orders/{order['id']}/", {"payment_method": "insurance"}, format="json")

    assert r.status_code == 200, r.data
    assert r.data["payment_method"] == "insurance"
    assert Decimal(r.data["total_amount"]) == Decimal("150.00")
    assert [i["code"] for i in r.data["items"]] == ["CBC"]


def test_update_unknown_order_is_404(auth_client):
    r = auth_client.patch("/api/v1/lab/orders/00000000-0000-0000-0000-000000000000/", {"status": "process"}, format="json")

    assert r.status_code == 404
    assert r.data["error"]["code"] == "not_found"
