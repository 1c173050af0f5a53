# labflow/common/views.py
from __future__ import annotations

import logging

from django.db import DatabaseError, connection
from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

logger = logging.getLogger(__name__)


class HealthView(APIView):
    """
    Liveness + database reachability. Never requires a session.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(tags=["Health"], responses={200: dict, 503: dict})
    def get(self, request):
        database = "connected"
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
        except DatabaseError as exc:
            logger.warning("Health check: database unreachable: %s", exc)
            database = "disconnected"

        ok = database == "connected"
        return Response(
            {
                "status": "ok" if ok else "degraded",
                "timestamp": timezone.now(),
                "database": database,
            },
            status=status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        )
