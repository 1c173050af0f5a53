from django.db import models

from labflow.common.models import TimeStampedModel

SINGLETON_KEY = 1


class CompanySettings(TimeStampedModel):
    """
    Clinic letterhead printed on reports and receipts. One row per install.
    """
    singleton_key = models.PositiveSmallIntegerField(default=SINGLETON_KEY, unique=True, editable=False)

    name = models.CharField(max_length=255, blank=True)
    name_en = models.CharField(max_length=255, blank=True)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=64, blank=True)
    email = models.EmailField(blank=True)
    website = models.CharField(max_length=255, blank=True)
    tax_id = models.CharField(max_length=32, blank=True)
    license = models.CharField(max_length=64, blank=True)

    class Meta:
        db_table = "company_settings"
        verbose_name_plural = "company settings"

    def __str__(self) -> str:
        return self.name or self.name_en or "Company settings"
