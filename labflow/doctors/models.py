# labflow/doctors/models.py
from django.db import models
from django.db.models import Q

from labflow.common.models import UUIDModel


class Doctor(UUIDModel):
    name = models.CharField(max_length=255, unique=True)
    license_number = models.CharField(max_length=64, null=True, blank=True)

    class Meta:
        db_table = "doctors_doctor"
        constraints = [
            models.UniqueConstraint(
                fields=["license_number"],
                condition=Q(license_number__isnull=False),
                name="uq_doctor_license_number",
            ),
        ]

    def __str__(self) -> str:
        return self.name
