# labflow/visits/models.py
from django.db import models

from labflow.common.models import UUIDModel


class Visit(UUIDModel):
    """
    One patient visit. ``visit_number`` is allocated from ``visit_date`` at
    creation and never changes.
    """
    visit_number = models.CharField(max_length=16, unique=True)

    patient = models.ForeignKey("patients.Patient", on_delete=models.PROTECT, related_name="visits")
    doctor = models.ForeignKey(
        "doctors.Doctor",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="visits",
    )

    visit_date = models.DateField(db_index=True)
    visit_time = models.TimeField(null=True, blank=True)
    department = models.CharField(max_length=128, blank=True)
    referring_organization = models.CharField(max_length=255, blank=True)

    # {"blood_pressure": "120/80", "heart_rate": 72, "temperature": 36.8, "weight": 60, "height": 170}
    vital_signs = models.JSONField(default=dict, blank=True)
    medical_history = models.TextField(blank=True)
    visit_details = models.TextField(blank=True)

    class Meta:
        db_table = "visits_visit"
        indexes = [
            models.Index(fields=["patient", "visit_date"]),
        ]

    def __str__(self) -> str:
        return self.visit_number
