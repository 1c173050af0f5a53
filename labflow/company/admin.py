from django.contrib import admin

from labflow.company.models import CompanySettings


@admin.register(CompanySettings)
class CompanySettingsAdmin(admin.ModelAdmin):
    list_display = ("name", "name_en", "phone", "tax_id", "updated_at")
