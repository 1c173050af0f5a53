# labflow/audit/models.py
import uuid
from django.db import models


class AuditEvent(models.Model):
    """
    Immutable audit record of who did what to which record.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    event_code = models.CharField(max_length=128, db_index=True)  # e.g. "patient.created"
    entity_type = models.CharField(max_length=128, db_index=True)  # e.g. "Patient"
    entity_id = models.CharField(max_length=64, db_index=True)

    # username, not FK: the trail must survive user deletion
    actor_username = models.CharField(max_length=150, blank=True, default="", db_index=True)

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict)

    class Meta:
        db_table = "audit_audit_event"
        indexes = [
            models.Index(fields=["entity_type", "entity_id"]),
        ]

    def __str__(self) -> str:
        return f"{self.event_code} {self.entity_type}:{self.entity_id}"
