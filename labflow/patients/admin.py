from django.contrib import admin

from labflow.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("ln", "first_name", "last_name", "id_card", "phone_number", "created_at")
    search_fields = ("ln", "first_name", "last_name", "id_card", "phone_number")
    readonly_fields = ("ln", "created_at", "updated_at")
    ordering = ("-created_at",)
