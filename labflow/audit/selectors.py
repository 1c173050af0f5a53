# labflow/audit/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from labflow.audit.models import AuditEvent


def list_audit_events(
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    event_code: str | None = None,
    actor_username: str | None = None,
) -> QuerySet[AuditEvent]:
    qs = AuditEvent.objects.all()

    if entity_type:
        qs = qs.filter(entity_type=entity_type)
    if entity_id:
        qs = qs.filter(entity_id=entity_id)
    if event_code:
        qs = qs.filter(event_code=event_code)
    if actor_username:
        qs = qs.filter(actor_username=actor_username)

    return qs.order_by("-occurred_at")
