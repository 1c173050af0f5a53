# labflow/patients/models.py
from django.db import models
from django.db.models import Q

from labflow.common.models import UUIDModel


class Patient(UUIDModel):
    """
    Registered patient. ``ln`` (lab number) is generated at registration and
    never changes afterwards.
    """
    ln = models.CharField(max_length=16, unique=True)

    # national ID; NULL when the patient has none
    id_card = models.CharField(max_length=32, null=True, blank=True)

    title = models.CharField(max_length=32, blank=True)
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    gender = models.CharField(max_length=16, blank=True)
    birth_date = models.DateField(null=True, blank=True)
    age = models.PositiveSmallIntegerField(null=True, blank=True)
    phone_number = models.CharField(max_length=32, blank=True)
    address = models.TextField(blank=True)

    class Meta:
        db_table = "patients_patient"
        constraints = [
            models.UniqueConstraint(
                fields=["id_card"],
                condition=Q(id_card__isnull=False),
                name="uq_patient_id_card",
            ),
        ]
        indexes = [
            models.Index(fields=["first_name", "last_name"]),
        ]

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.title, self.first_name, self.last_name) if p)

    def __str__(self) -> str:
        return f"{self.full_name} ({self.ln})"
