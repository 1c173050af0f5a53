import pytest
from django.utils import timezone

from labflow.audit.models import AuditEvent
from labflow.identifiers.periods import configured_rule
from labflow.patients.models import Patient

pytestmark = pytest.mark.django_db


def current_prefix():
    return configured_rule().prefix_for(timezone.localdate())


def create(client, **overrides):
    payload = {"first_name": "Anong", "last_name": "Wong", "gender": "female"}
    payload.update(overrides)
    return client.post("/api/v1/patients/", payload, format="json")


def test_create_allocates_ln_in_current_bucket(auth_client):
    r = create(auth_client)

    assert r.status_code == 201, r.data
    assert r.data["ln"] == current_prefix() + "0001"
    assert AuditEvent.objects.filter(event_code="patient.created", entity_id=r.data["id"]).exists()


def test_lns_are_sequential(auth_client):
    lns = [create(auth_client, id_card=f"11037000000{i:02d}").data["ln"] for i in range(3)]

    prefix = current_prefix()
    assert lns == [prefix + "0001", prefix + "0002", prefix + "0003"]


def test_generate_ln_previews_next_without_reserving(auth_client):
    create(auth_client)

    preview = auth_client.get("/api/v1/patients/generate-ln/")

    assert preview.status_code == 200
    assert preview.data["ln"] == current_prefix() + "0002"
    assert Patient.objects.count() == 1


def test_taken_ln_proposal_is_replaced(auth_client):
    first = create(auth_client).data["ln"]

    r = create(auth_client, ln=first, first_name="Second")

    assert r.status_code == 201
    assert r.data["ln"] != first
    assert r.data["ln"] == current_prefix() + "0002"


def test_free_ln_proposal_is_honoured(auth_client):
    wanted = current_prefix() + "0005"

    r = create(auth_client, ln=wanted)

    assert r.data["ln"] == wanted


def test_blank_id_card_stored_as_null_and_not_unique(auth_client):
    a = create(auth_client, id_card="")
    b = create(auth_client, id_card="   ")

    assert a.status_code == b.status_code == 201
    assert Patient.objects.filter(id_card__isnull=True).count() == 2


def test_duplicate_id_card_is_conflict(auth_client):
    assert create(auth_client, id_card="3100000000001").status_code == 201

    dup = create(auth_client, id_card="3100000000001")

    assert dup.status_code == 409
    assert dup.data["error"]["code"] == "uniqueness_conflict"
    assert Patient.objects.count() == 1


def test_missing_names_is_validation_error(auth_client):
    r = auth_client.post("/api/v1/patients/", {"first_name": "Only"}, format="json")

    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"
    assert "last_name" in r.data["error"]["details"]


def test_retrieve_and_patch(auth_client, patient):
    r = auth_client.get(f"/api/v1/patients/{patient.id}/")
    assert r.status_code == 200
    assert r.data["ln"] == patient.ln

    p = auth_client.patch(f"/api/v1/patients/{patient.id}/", {"phone_number": "0800000000"}, format="json")
    assert p.status_code == 200, p.data
    assert p.data["phone_number"] == "0800000000"
    assert p.data["ln"] == patient.ln


def test_ln_is_immutable(auth_client, patient):
    r = auth_client.patch(f"/api/v1/patients/{patient.id}/", {"ln": "99999999"}, format="json")

    assert r.status_code == 400
    assert "ln" in r.data["error"]["details"]
    patient.refresh_from_db()
    assert patient.ln != "99999999"


def test_patch_to_other_patients_id_card_is_conflict(auth_client, patient):
    other = create(auth_client, id_card="3100000000002").data

    r = auth_client.patch(f"/api/v1/patients/{other['id']}/", {"id_card": patient.id_card}, format="json")

    assert r.status_code == 409


def test_patch_keeping_own_id_card_is_fine(auth_client, patient):
    r = auth_client.patch(
        f"/api/v1/patients/{patient.id}/",
        {"id_card": patient.id_card, "address": "Bangkok"},
        format="json",
    )
    assert r.status_code == 200


def test_search_by_name_ln_and_id_card(auth_client, patient):
    create(auth_client, first_name="Zed", last_name="Other")

    for q in ("malee", patient.ln, patient.id_card[-5:]):
        r = auth_client.get("/api/v1/patients/", {"q": q})
        assert r.status_code == 200
        assert [row["id"] for row in r.data["results"]] == [str(patient.id)]


def test_list_is_paginated(auth_client, patient):
    r = auth_client.get("/api/v1/patients/")

    assert r.status_code == 200
    assert r.data["count"] == 1
    assert set(r.data) >= {"count", "next", "previous", "results"}


def test_unknown_and_malformed_ids(auth_client):
    missing = auth_client.get("/api/v1/patients/00000000-0000-0000-0000-000000000000/")
    assert missing.status_code == 404
    assert missing.data["error"]["code"] == "not_found"

    bad = auth_client.get("/api/v1/patients/not-a-uuid/")
    assert bad.status_code == 400


def test_delete(auth_client, patient):
    r = auth_client.delete(f"/api/v1/patients/{patient.id}/")

    assert r.status_code == 204
    assert not Patient.objects.filter(id=patient.id).exists()


def test_delete_with_visits_is_conflict(auth_client, visit):
    r = auth_client.delete(f"/api/v1/patients/{visit.patient_id}/")

    assert r.status_code == 409
    assert r.data["error"]["code"] == "conflict"
