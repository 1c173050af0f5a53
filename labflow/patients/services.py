# labflow/patients/services.py
from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import ProtectedError
from django.utils.translation import gettext_lazy as _

from labflow.audit.services import AuditService
from labflow.common.api.exceptions import ConflictError
from labflow.identifiers.exceptions import UniquenessConflict
from labflow.identifiers.generator import IdentifierGenerator, ModelFieldSource, ModelSequenceLedger, allocate
from labflow.patients.models import Patient
from labflow.patients.selectors import id_card_taken

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "id_card",
    "title",
    "first_name",
    "last_name",
    "gender",
    "birth_date",
    "age",
    "phone_number",
    "address",
}


def ln_generator() -> IdentifierGenerator:
    return IdentifierGenerator(
        ModelFieldSource(Patient, "ln"),
        ledger=ModelSequenceLedger("patient_ln"),
        label="LN",
    )


def normalize_id_card(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


class PatientService:
    @staticmethod
    def preview_ln(*, when: date | None = None) -> str:
        return ln_generator().propose(when)

    @staticmethod
    @transaction.atomic
    def create_patient(
        *,
        actor_username: str | None,
        first_name: str,
        last_name: str,
        ln: str | None = None,
        id_card: str | None = None,
        **fields,
    ) -> Patient:
        """
        Register a patient. The LN is allocated here; ``ln`` from the client
        is only a preview and is replaced when it is malformed or taken.
        """
        id_card = normalize_id_card(id_card)
        if id_card and id_card_taken(id_card):
            raise UniquenessConflict(_("A patient with this ID card number already exists."))

        extra = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}

        def insert(candidate: str) -> Patient:
            return Patient.objects.create(
                ln=candidate,
                id_card=id_card,
                first_name=first_name,
                last_name=last_name,
                **extra,
            )

        patient = allocate(ln_generator(), insert, requested=ln)

        if ln and patient.ln != ln:
            logger.info("Requested LN %s was replaced by %s", ln, patient.ln)

        AuditService.log(
            event_code="patient.created",
            entity_type="Patient",
            entity_id=patient.id,
            actor_username=actor_username,
            metadata={"ln": patient.ln},
        )
        return patient

    @staticmethod
    @transaction.atomic
    def update_patient(
        *,
        actor_username: str | None,
        patient_id: UUID,
        data: dict,
    ) -> Patient:
        patient = Patient.objects.get(id=patient_id)

        # ln is not updatable
        updates = {k: v for k, v in (data or {}).items() if k in UPDATABLE_FIELDS}

        if "id_card" in updates:
            updates["id_card"] = normalize_id_card(updates["id_card"])
            if updates["id_card"] and id_card_taken(updates["id_card"], exclude_id=patient.id):
                raise UniquenessConflict(_("A patient with this ID card number already exists."))

        for k, v in updates.items():
            setattr(patient, k, v)

        try:
            with transaction.atomic():
                patient.save()
        except IntegrityError as exc:
            raise UniquenessConflict(_("A patient with this ID card number already exists.")) from exc

        AuditService.log(
            event_code="patient.updated",
            entity_type="Patient",
            entity_id=patient.id,
            actor_username=actor_username,
            metadata={"updated_fields": sorted(updates.keys())},
        )
        return patient

    @staticmethod
    @transaction.atomic
    def delete_patient(*, actor_username: str | None, patient_id: UUID) -> None:
        patient = Patient.objects.get(id=patient_id)
        ln = patient.ln

        try:
            patient.delete()
        except ProtectedError:
            raise ConflictError(_("Patient has visits and cannot be deleted."))

        AuditService.log(
            event_code="patient.deleted",
            entity_type="Patient",
            entity_id=patient_id,
            actor_username=actor_username,
            metadata={"ln": ln},
        )
