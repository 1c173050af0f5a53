from django.contrib import admin

from labflow.visits.models import Visit


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = ("visit_number", "patient", "visit_date", "department", "doctor")
    list_filter = ("visit_date", "department")
    search_fields = ("visit_number", "patient__ln", "patient__first_name", "patient__last_name")
    readonly_fields = ("visit_number", "created_at", "updated_at")
    ordering = ("-created_at",)
