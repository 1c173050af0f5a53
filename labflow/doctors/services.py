# labflow/doctors/services.py
from __future__ import annotations

from uuid import UUID

from django.db import IntegrityError, transaction
from django.utils.translation import gettext_lazy as _

from labflow.audit.services import AuditService
from labflow.doctors.models import Doctor
from labflow.identifiers.exceptions import UniquenessConflict

DUPLICATE_NAME = _("A doctor with this name already exists.")
DUPLICATE_LICENSE = _("A doctor with this license number already exists.")


def _clean(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


def _check_unique(*, name: str | None, license_number: str | None, exclude_id=None) -> None:
    qs = Doctor.objects.all()
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    if name and qs.filter(name=name).exists():
        raise UniquenessConflict(DUPLICATE_NAME)
    if license_number and qs.filter(license_number=license_number).exists():
        raise UniquenessConflict(DUPLICATE_LICENSE)


class DoctorService:
    @staticmethod
    @transaction.atomic
    def create_doctor(*, actor_username: str | None, name: str, license_number: str | None = None) -> Doctor:
        name = name.strip()
        license_number = _clean(license_number)
        _check_unique(name=name, license_number=license_number)

        try:
            with transaction.atomic():
                doctor = Doctor.objects.create(name=name, license_number=license_number)
        except IntegrityError as exc:
            raise UniquenessConflict() from exc

        AuditService.log(
            event_code="doctor.created",
            entity_type="Doctor",
            entity_id=doctor.id,
            actor_username=actor_username,
            metadata={"name": name},
        )
        return doctor

    @staticmethod
    @transaction.atomic
    def update_doctor(*, actor_username: str | None, doctor_id: UUID, data: dict) -> Doctor:
        doctor = Doctor.objects.get(id=doctor_id)

        updates = {k: v for k, v in (data or {}).items() if k in {"name", "license_number"}}
        if "name" in updates:
            updates["name"] = updates["name"].strip()
        if "license_number" in updates:
            updates["license_number"] = _clean(updates["license_number"])

        _check_unique(
            name=updates.get("name"),
            license_number=updates.get("license_number"),
            exclude_id=doctor.id,
        )

        for k, v in updates.items():
            setattr(doctor, k, v)

        try:
            with transaction.atomic():
                doctor.save()
        except IntegrityError as exc:
            raise UniquenessConflict() from exc

        AuditService.log(
            event_code="doctor.updated",
            entity_type="Doctor",
            entity_id=doctor.id,
            actor_username=actor_username,
            metadata={"updated_fields": sorted(updates.keys())},
        )
        return doctor

    @staticmethod
    @transaction.atomic
    def delete_doctor(*, actor_username: str | None, doctor_id: UUID) -> None:
        doctor = Doctor.objects.get(id=doctor_id)
        name = doctor.name
        # visits keep their history; the FK is SET_NULL
        doctor.delete()

        AuditService.log(
            event_code="doctor.deleted",
            entity_type="Doctor",
            entity_id=doctor_id,
            actor_username=actor_username,
            metadata={"name": name},
        )

    @staticmethod
    @transaction.atomic
    def find_or_create(*, actor_username: str | None, name: str, license_number: str) -> tuple[Doctor, bool]:
        """
        Resolve the doctor typed into a visit form.

        Match on license number first, then on name (filling in a missing
        license). Otherwise create. Returns (doctor, created).
        """
        name = name.strip()
        license_number = license_number.strip()

        doctor = Doctor.objects.filter(license_number=license_number).first()
        if doctor is not None:
            return doctor, False

        doctor = Doctor.objects.filter(name=name).first()
        if doctor is not None:
            if doctor.license_number:
                # same name, different license: two people, names must stay unique
                raise UniquenessConflict(DUPLICATE_NAME)
            doctor.license_number = license_number
            doctor.save(update_fields=["license_number", "updated_at"])
            return doctor, False

        return DoctorService.create_doctor(
            actor_username=actor_username,
            name=name,
            license_number=license_number,
        ), True
