from rest_framework import serializers
from labflow.audit.models import AuditEvent


class AuditEventSerializer(serializers.ModelSerializer):
    # API field "timestamp" maps to occurred_at
    timestamp = serializers.DateTimeField(source="occurred_at", read_only=True)

    class Meta:
        model = AuditEvent
        fields = [
            "id",
            "entity_type",
            "entity_id",
            "event_code",
            "actor_username",
            "timestamp",
            "metadata",
        ]
        read_only_fields = fields
