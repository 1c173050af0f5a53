from django.contrib import admin

from labflow.audit.models import AuditEvent


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ("occurred_at", "event_code", "entity_type", "entity_id", "actor_username")
    list_filter = ("event_code", "entity_type")
    search_fields = ("entity_id", "actor_username")
    readonly_fields = [f.name for f in AuditEvent._meta.fields]
