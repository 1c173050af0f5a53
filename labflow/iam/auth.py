# labflow/iam/auth.py
from __future__ import annotations

from rest_framework.authentication import BaseAuthentication

from labflow.iam.exceptions import InvalidSession
from labflow.iam.services.sessions import get_session_store

SESSION_HEADER = "X-Session-Id"
USERNAME_HEADER = "X-Username"


def read_session_headers(request) -> tuple[str, str]:
    """
    (session_id, username) from the request, blank when absent.
    """
    session_id = (request.META.get("HTTP_X_SESSION_ID") or "").strip()
    username = (request.META.get("HTTP_X_USERNAME") or "").strip()
    return session_id, username


class SessionHeaderAuthentication(BaseAuthentication):
    """
    Authenticate using the pair of headers issued at login:
      X-Session-Id: <session id>
      X-Username: <username>

    - neither header  -> anonymous (public endpoints keep working;
                         protected ones answer invalid_session)
    - only one header -> InvalidSession, before touching the store
    - both            -> SessionStore.validate()
    """

    def authenticate(self, request):
        session_id, username = read_session_headers(request)

        if not session_id and not username:
            return None
        if not session_id or not username:
            raise InvalidSession()

        user = get_session_store().validate(session_id=session_id, username=username)
        return user, session_id

    def authenticate_header(self, request):
        # Non-empty so DRF answers 401 (not 403) on auth failures.
        return 'Session realm="api"'
