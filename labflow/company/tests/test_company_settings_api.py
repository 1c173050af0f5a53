import pytest

from labflow.audit.models import AuditEvent
from labflow.company.models import CompanySettings

pytestmark = pytest.mark.django_db

URL = "/api/v1/company-settings/"


def test_empty_until_saved(auth_client):
    r = auth_client.get(URL)

    assert r.status_code == 200
    assert r.data == {}


def test_save_then_read(auth_client):
    r = auth_client.post(
        URL,
        {"name": "คลินิกเทคนิคการแพทย์", "name_en": "LabFlow Clinic", "tax_id": "0105551234567"},
        format="json",
    )

    assert r.status_code == 200, r.data
    assert r.data["data"]["name_en"] == "LabFlow Clinic"

    got = auth_client.get(URL).data
    assert got["tax_id"] == "0105551234567"
    assert got["phone"] == ""


def test_save_replaces_single_row(auth_client):
    auth_client.post(URL, {"name": "First", "phone": "021234567"}, format="json")
    auth_client.post(URL, {"name": "Second"}, format="json")

    assert CompanySettings.objects.count() == 1
    row = CompanySettings.objects.get()
    assert row.name == "Second"
    assert row.phone == ""
    codes = AuditEvent.objects.filter(entity_type="CompanySettings").values_list("event_code", flat=True)
    assert sorted(codes) == ["company_settings.created", "company_settings.updated"]


def test_rejects_bad_email(auth_client):
    r = auth_client.post(URL, {"email": "not-an-email"}, format="json")

    assert r.status_code == 400
    assert "email" in r.data["error"]["details"]


def test_requires_session(api_client):
    assert api_client.get(URL).status_code == 401
