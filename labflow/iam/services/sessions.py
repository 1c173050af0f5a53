# labflow/iam/services/sessions.py
"""
Session store: who is signed in, checked on every protected request.

Two tiers:
  - UserSession rows (authoritative, shared by every process)
  - SessionCache (this process only; saves the session lookup on hot paths)

Policy:
  - one session per username; login deletes the previous ones
  - a session idle longer than ttl_seconds is gone (deleted on next read,
    and in bulk by ``manage.py purge_sessions``)
  - a session whose user was deleted/deactivated is dropped on next use
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable

from django.apps import apps
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils import timezone

from labflow.audit.services import AuditService
from labflow.iam.cache import CachedSession, SessionCache
from labflow.iam.exceptions import (
    InvalidCredentials,
    InvalidSession,
    SessionError,
    SessionExpired,
    UserNotFound,
)
from labflow.iam.models import UserSession

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 1800


def new_session_id() -> str:
    return str(uuid.uuid4())


class SessionStore:
    def __init__(
        self,
        *,
        cache: SessionCache,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.cache = cache
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock

    # ------------------------------------------------------------------
    # Login / logout
    # ------------------------------------------------------------------
    def login(self, *, username: str, password: str, user_agent: str = ""):
        """
        Verify credentials and open the user's only session.
        Returns (user, UserSession).
        """
        User = get_user_model()
        user = User.objects.filter(username=username).first()

        # check_password compares against the salted hash
        if user is None or not user.is_active or not user.check_password(password):
            logger.info("Login rejected for username=%s", username)
            raise InvalidCredentials()

        now = self.clock()
        self.cache.evict(username)

        try:
            with transaction.atomic():
                # Serializes logins of one user so only one session survives.
                User.objects.select_for_update().filter(pk=user.pk).first()
                replaced, _ = UserSession.objects.filter(username=username).delete()
                session = UserSession.objects.create(
                    username=username,
                    session_id=new_session_id(),
                    login_time=now,
                    last_activity=now,
                    user_agent=(user_agent or "Unknown")[:255],
                )
                User.objects.filter(pk=user.pk).update(last_login=now)
                AuditService.log(
                    event_code="session.login",
                    entity_type="UserSession",
                    entity_id=session.id,
                    actor_username=username,
                    metadata={"replaced_sessions": replaced, "user_agent": session.user_agent},
                )
        except DatabaseError as exc:
            logger.exception("Could not open a session for username=%s", username)
            raise SessionError() from exc

        self.cache.put(username, CachedSession.from_model(session))

        if replaced:
            logger.info("Login for username=%s invalidated %s earlier session(s)", username, replaced)
        else:
            logger.info("Login for username=%s", username)
        return user, session

    def logout(self, username: str) -> int:
        """
        Drop every session of ``username``. Idempotent; returns rows deleted.
        """
        try:
            with transaction.atomic():
                deleted, _ = UserSession.objects.filter(username=username).delete()
                if deleted:
                    AuditService.log(
                        event_code="session.logout",
                        entity_type="User",
                        entity_id=username,
                        actor_username=username,
                        metadata={"sessions": deleted},
                    )
        except DatabaseError as exc:
            logger.exception("Logout failed for username=%s", username)
            raise SessionError() from exc
        finally:
            self.cache.evict(username)

        if deleted:
            logger.info("Logout for username=%s", username)
        return deleted

    # ------------------------------------------------------------------
    # Per-request validation
    # ------------------------------------------------------------------
    def validate(self, *, session_id: str | None, username: str | None):
        """
        Resolve ``(session_id, username)`` to the signed-in user or raise one of
        InvalidSession / SessionExpired / UserNotFound / SessionError.
        """
        if not session_id or not username:
            raise InvalidSession()

        try:
            return self._validate(session_id, username, self.clock())
        except DatabaseError as exc:
            logger.exception("Session validation failed for username=%s", username)
            raise SessionError() from exc

    def _validate(self, session_id: str, username: str, now: datetime):
        cached = self.cache.get(username, now=now)

        if cached is None or cached.session_id != session_id:
            row = UserSession.objects.filter(username=username, session_id=session_id).first()
            if row is None:
                raise SessionExpired()

            if self.is_expired(row.last_activity, now):
                row.delete()
                self.cache.evict(username, session_id)
                logger.info("Session of username=%s idle since %s; removed", username, row.last_activity)
                raise SessionExpired()

            self.cache.put(username, CachedSession.from_model(row))

        User = get_user_model()
        user = User.objects.filter(username=username, is_active=True).first()
        if user is None:
            UserSession.objects.filter(username=username, session_id=session_id).delete()
            self.cache.evict(username)
            logger.warning("Dropped session of missing or inactive username=%s", username)
            raise UserNotFound()

        # A zero-row update means another process replaced or expired it.
        touched = UserSession.objects.filter(username=username, session_id=session_id).update(last_activity=now)
        if not touched:
            self.cache.evict(username, session_id)
            raise SessionExpired()

        self.cache.touch(username, session_id, now)
        return user

    # ------------------------------------------------------------------
    # TTL
    # ------------------------------------------------------------------
    def is_expired(self, last_activity: datetime, now: datetime) -> bool:
        return now - last_activity > self.ttl

    def purge_expired(self, now: datetime | None = None) -> int:
        now = now or self.clock()
        deleted, _ = UserSession.objects.filter(last_activity__lt=now - self.ttl).delete()
        self.cache.purge_expired(now)
        if deleted:
            logger.info("Purged %s expired session(s)", deleted)
        return deleted


def build_session_store() -> SessionStore:
    ttl = int(getattr(settings, "LABFLOW_SESSION_TTL_SECONDS", DEFAULT_TTL_SECONDS))
    size = int(getattr(settings, "LABFLOW_SESSION_CACHE_SIZE", 1024))
    return SessionStore(cache=SessionCache(max_entries=size, ttl_seconds=ttl), ttl_seconds=ttl)


def get_session_store() -> SessionStore:
    """
    The process-wide store built in IamConfig.ready().
    """
    return apps.get_app_config("iam").session_store
