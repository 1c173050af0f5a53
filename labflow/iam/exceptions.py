# labflow/iam/exceptions.py
"""
Session failure taxonomy. Each maps to its own error code in the envelope
rendered by labflow.common.api.exceptions.api_exception_handler.
"""
from __future__ import annotations

from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException, AuthenticationFailed


class InvalidCredentials(AuthenticationFailed):
    default_detail = _("Incorrect username or password.")
    default_code = "invalid_credentials"


class InvalidSession(AuthenticationFailed):
    """Session headers missing or incomplete."""
    default_detail = _("Please sign in again.")
    default_code = "invalid_session"


class SessionExpired(AuthenticationFailed):
    """No such session, replaced by a newer login, or idle past the TTL."""
    default_detail = _("Your session has expired. Please sign in again.")
    default_code = "session_expired"


class UserNotFound(AuthenticationFailed):
    """The session outlived its user."""
    default_detail = _("User not found. Please contact the system administrator.")
    default_code = "user_not_found"


class SessionError(APIException):
    """Unexpected store failure while checking a session."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _("Session verification failed. Please try again.")
    default_code = "session_error"
