from django.contrib import admin

from labflow.identifiers.models import IdentifierSequence


@admin.register(IdentifierSequence)
class IdentifierSequenceAdmin(admin.ModelAdmin):
    list_display = ("name", "prefix", "last_value", "updated_at")
    list_filter = ("name",)
    readonly_fields = [f.name for f in IdentifierSequence._meta.fields]
