# labflow/identifiers/exceptions.py
from __future__ import annotations

from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException


class IdentifierExhausted(APIException):
    """
    The retry budget ran out before a free identifier could be committed.
    """
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = _("Could not generate a unique number. Please try again.")
    default_code = "identifier_exhausted"


class UniquenessConflict(APIException):
    """
    The store rejected an insert/update on a unique field other than the
    generated identifier (e.g. a national ID card already registered).
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = _("A record with the same unique value already exists.")
    default_code = "uniqueness_conflict"
