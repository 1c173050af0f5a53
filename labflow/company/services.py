# labflow/company/services.py
from __future__ import annotations

from django.db import transaction

from labflow.audit.services import AuditService
from labflow.company.models import SINGLETON_KEY, CompanySettings

FIELDS = ("name", "name_en", "address", "phone", "email", "website", "tax_id", "license")


def get_company_settings() -> CompanySettings | None:
    return CompanySettings.objects.filter(singleton_key=SINGLETON_KEY).first()


class CompanySettingsService:
    @staticmethod
    @transaction.atomic
    def save(*, actor_username: str | None, **fields) -> CompanySettings:
        """
        Replace the settings row: fields left out are cleared, not kept.
        """
        values = {k: fields.get(k) or "" for k in FIELDS}
        settings_row, created = CompanySettings.objects.update_or_create(
            singleton_key=SINGLETON_KEY,
            defaults=values,
        )

        AuditService.log(
            event_code="company_settings.created" if created else "company_settings.updated",
            entity_type="CompanySettings",
            entity_id=settings_row.id,
            actor_username=actor_username,
            metadata={"fields": sorted(k for k, v in values.items() if v)},
        )
        return settings_row
