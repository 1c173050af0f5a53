# labflow/conftest.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone as dt_timezone

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from labflow.iam.cache import SessionCache
from labflow.iam.models import UserProfile
from labflow.iam.services.sessions import SessionStore, get_session_store
from labflow.identifiers.periods import PeriodRule

PASSWORD = "Lab-Pass-2024!"


def session_headers(session_id: str, username: str) -> dict:
    """
    DRF test client needs the HTTP_ prefix.
    """
    return {"HTTP_X_SESSION_ID": session_id, "HTTP_X_USERNAME": username}


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 3, 15, 9, 0, tzinfo=dt_timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def _clear_session_cache():
    # the process-wide cache outlives each test's rolled-back transaction
    get_session_store().cache.clear()
    yield
    get_session_store().cache.clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return SessionStore(cache=SessionCache(max_entries=16, ttl_seconds=1800), ttl_seconds=1800, clock=clock)


@pytest.fixture
def gregorian_month():
    return PeriodRule("gregorian", "month")


@pytest.fixture
def user(db):
    User = get_user_model()
    u = User.objects.create_user(
        username="tech1",
        password=PASSWORD,
        first_name="Somchai",
        last_name="Dee",
        is_active=True,
    )
    UserProfile.objects.create(user=u, phone="0812345678")
    return u


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(user):
    """
    Client carrying a real session from SessionStore.login, so every request
    goes through SessionHeaderAuthentication.
    """
    _, session = get_session_store().login(username=user.username, password=PASSWORD)
    c = APIClient()
    c.credentials(**session_headers(session.session_id, user.username))
    c.session_id = session.session_id
    return c


@pytest.fixture
def patient(db):
    from labflow.patients.services import PatientService

    return PatientService.create_patient(
        actor_username="tech1",
        first_name="Malee",
        last_name="Suksan",
        id_card="1103700000001",
        gender="female",
        phone_number="0899999999",
    )


@pytest.fixture
def doctor(db):
    from labflow.doctors.services import DoctorService

    return DoctorService.create_doctor(actor_username="tech1", name="Dr. Prasert", license_number="MD-1001")


@pytest.fixture
def visit(patient, doctor):
    from labflow.visits.services import VisitService

    return VisitService.create_visit(
        actor_username="tech1",
        patient=patient,
        doctor=doctor,
        visit_date=date(2024, 3, 15),
        department="OPD",
    )


@pytest.fixture
def lab_test(db):
    from labflow.lab.services import LabCatalogService

    return LabCatalogService.create_test(actor_username="tech1", code="CBC", name="Complete blood count", price="150.00")
