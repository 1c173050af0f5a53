import pytest
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db.models import QuerySet

from labflow.audit.models import AuditEvent
from labflow.conftest import PASSWORD
from labflow.iam.exceptions import (
    InvalidCredentials,
    InvalidSession,
    SessionError,
    SessionExpired,
    UserNotFound,
)
from labflow.iam.models import UserSession

pytestmark = pytest.mark.django_db


def test_login_creates_single_session(store, user):
    u, session = store.login(username="tech1", password=PASSWORD, user_agent="pytest")

    assert u == user
    assert UserSession.objects.filter(username="tech1").count() == 1
    assert session.user_agent == "pytest"
    assert "tech1" in store.cache


def test_login_rejects_bad_password(store, user):
    with pytest.raises(InvalidCredentials):
        store.login(username="tech1", password="wrong")
    assert not UserSession.objects.exists()


def test_login_rejects_unknown_user(store, db):
    with pytest.raises(InvalidCredentials):
        store.login(username="ghost", password=PASSWORD)


def test_password_is_stored_hashed(user):
    assert user.password != PASSWORD
    assert user.check_password(PASSWORD)


def test_double_login_invalidates_first_session(store, user):
    _, s1 = store.login(username="tech1", password=PASSWORD)
    _, s2 = store.login(username="tech1", password=PASSWORD)

    assert s1.session_id != s2.session_id
    assert UserSession.objects.filter(username="tech1").count() == 1

    with pytest.raises(SessionExpired):
        store.validate(session_id=s1.session_id, username="tech1")
    assert store.validate(session_id=s2.session_id, username="tech1") == user


def test_double_login_recorded_in_audit(store, user):
    store.login(username="tech1", password=PASSWORD)
    store.login(username="tech1", password=PASSWORD)

    last = AuditEvent.objects.filter(event_code="session.login").order_by("-occurred_at").first()
    assert last.metadata["replaced_sessions"] == 1


def test_validate_is_idempotent_apart_from_last_activity(store, user, clock):
    _, session = store.login(username="tech1", password=PASSWORD)

    clock.advance(minutes=1)
    first = store.validate(session_id=session.session_id, username="tech1")
    clock.advance(minutes=1)
    second = store.validate(session_id=session.session_id, username="tech1")

    assert first == second == user
    row = UserSession.objects.get(username="tech1")
    assert row.session_id == session.session_id
    assert row.last_activity == clock.now


@pytest.mark.parametrize("session_id,username", [("", "tech1"), ("abc", ""), (None, None)])
def test_validate_requires_both_parts(store, session_id, username):
    with pytest.raises(InvalidSession):
        store.validate(session_id=session_id, username=username)


def test_validate_unknown_session_is_expired(store, user):
    with pytest.raises(SessionExpired):
        store.validate(session_id="not-a-session", username="tech1")


def test_session_idle_past_ttl_is_removed(store, user, clock):
    _, session = store.login(username="tech1", password=PASSWORD)

    clock.advance(seconds=1801)

    with pytest.raises(SessionExpired):
        store.validate(session_id=session.session_id, username="tech1")
    assert not UserSession.objects.filter(username="tech1").exists()


def test_activity_keeps_session_alive(store, user, clock):
    _, session = store.login(username="tech1", password=PASSWORD)

    for _ in range(4):
        clock.advance(minutes=25)
        store.validate(session_id=session.session_id, username="tech1")

    assert UserSession.objects.filter(username="tech1").exists()


def test_cache_miss_falls_back_to_database(store, user):
    _, session = store.login(username="tech1", password=PASSWORD)
    store.cache.clear()

    assert store.validate(session_id=session.session_id, username="tech1") == user
    assert "tech1" in store.cache


def test_session_dropped_elsewhere_is_not_served_from_cache(store, user):
    _, session = store.login(username="tech1", password=PASSWORD)

    # another process logged the user out; this process still has the cache entry
    UserSession.objects.filter(username="tech1").delete()

    with pytest.raises(SessionExpired):
        store.validate(session_id=session.session_id, username="tech1")
    assert "tech1" not in store.cache


def test_deleted_user_drops_session(store, user):
    _, session = store.login(username="tech1", password=PASSWORD)
    get_user_model().objects.filter(username="tech1").delete()

    with pytest.raises(UserNotFound):
        store.validate(session_id=session.session_id, username="tech1")
    assert not UserSession.objects.filter(username="tech1").exists()
    assert "tech1" not in store.cache


def test_deactivated_user_drops_session(store, user):
    _, session = store.login(username="tech1", password=PASSWORD)
    user.is_active = False
    user.save(update_fields=["is_active"])

    with pytest.raises(UserNotFound):
        store.validate(session_id=session.session_id, username="tech1")


def test_logout_is_idempotent(store, user):
    _, session = store.login(username="tech1", password=PASSWORD)

    assert store.logout("tech1") == 1
    assert store.logout("tech1") == 0
    assert "tech1" not in store.cache

    with pytest.raises(SessionExpired):
        store.validate(session_id=session.session_id, username="tech1")


def test_purge_expired_sweeps_idle_rows(store, user, clock):
    store.login(username="tech1", password=PASSWORD)
    clock.advance(hours=1)

    assert store.purge_expired() == 1
    assert not UserSession.objects.exists()


def test_store_failure_surfaces_as_session_error(store, user, monkeypatch):
    _, session = store.login(username="tech1", password=PASSWORD)
    store.cache.clear()

    def boom(*args, **kwargs):
        raise DatabaseError("connection lost")

    monkeypatch.setattr(UserSession.objects, "filter", boom)

    with pytest.raises(SessionError):
        store.validate(session_id=session.session_id, username="tech1")


def test_login_locks_user_row_before_replacing_sessions(store, user, monkeypatch):
    # SQLite serializes writers, so assert the lock order instead of racing threads.
    events = []
    select_for_update = QuerySet.select_for_update
    delete = QuerySet.delete

    def spy_select_for_update(qs, *args, **kwargs):
        events.append(("lock", qs.model))
        return select_for_update(qs, *args, **kwargs)

    def spy_delete(qs):
        events.append(("delete", qs.model))
        return delete(qs)

    monkeypatch.setattr(QuerySet, "select_for_update", spy_select_for_update)
    monkeypatch.setattr(QuerySet, "delete", spy_delete)

    store.login(username="tech1", password=PASSWORD)

    User = get_user_model()
    assert ("lock", User) in events
    assert events.index(("lock", User)) < events.index(("delete", UserSession))
