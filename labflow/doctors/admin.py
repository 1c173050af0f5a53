from django.contrib import admin

from labflow.doctors.models import Doctor


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ("name", "license_number", "created_at")
    search_fields = ("name", "license_number")
    ordering = ("name",)
