# labflow/visits/selectors.py
from __future__ import annotations

from datetime import date
from uuid import UUID

from django.db.models import QuerySet

from labflow.visits.models import Visit


def list_visits(*, patient_id: UUID | None = None, visit_date: date | None = None) -> QuerySet[Visit]:
    qs = Visit.objects.select_related("patient", "doctor")
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if visit_date:
        qs = qs.filter(visit_date=visit_date)
    return qs.order_by("-created_at")


def get_visit_by_number(visit_number: str) -> Visit:
    return Visit.objects.select_related("patient", "doctor").get(visit_number=visit_number)
