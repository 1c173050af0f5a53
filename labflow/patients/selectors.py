# labflow/patients/selectors.py
from __future__ import annotations

from django.db.models import Q, QuerySet

from labflow.patients.models import Patient


def search_patients(*, q: str | None = None) -> QuerySet[Patient]:
    qs = Patient.objects.all()

    qv = (q or "").strip()
    if qv:
        qs = qs.filter(
            Q(first_name__icontains=qv)
            | Q(last_name__icontains=qv)
            | Q(id_card__icontains=qv)
            | Q(ln__icontains=qv)
        )

    return qs.order_by("-created_at")


def id_card_taken(id_card: str, *, exclude_id=None) -> bool:
    qs = Patient.objects.filter(id_card=id_card)
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    return qs.exists()
