import pytest
from django.db import DatabaseError
from rest_framework.test import APIClient

from labflow.conftest import session_headers

pytestmark = pytest.mark.django_db


def test_health_is_public_and_reports_database():
    r = APIClient().get("/api/v1/health/")

    assert r.status_code == 200
    assert r.data["status"] == "ok"
    assert r.data["database"] == "connected"


def test_health_ignores_bad_session_headers():
    c = APIClient()
    c.credentials(**session_headers("bogus", "nobody"))

    assert c.get("/api/v1/health/").status_code == 200


def test_health_reports_database_down(monkeypatch):
    from labflow.common import views

    class DownConnection:
        def cursor(self):
            raise DatabaseError("down")

    monkeypatch.setattr(views, "connection", DownConnection())

    r = APIClient().get("/api/v1/health/")

    assert r.status_code == 503
    assert r.data["database"] == "disconnected"


def test_request_id_is_echoed_in_header_and_envelope():
    r = APIClient().get("/api/v1/patients/", HTTP_X_REQUEST_ID="req-123")

    assert r.status_code == 401
    assert r["X-Request-Id"] == "req-123"
    assert r.data["error"]["request_id"] == "req-123"


def test_unauthenticated_response_carries_challenge():
    r = APIClient().get("/api/v1/patients/")

    assert r.status_code == 401
    assert r["WWW-Authenticate"].startswith("Session")
