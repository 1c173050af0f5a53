# labflow/visits/services.py
from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from django.db import transaction
from django.db.models import ProtectedError
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from labflow.audit.services import AuditService
from labflow.common.api.exceptions import ConflictError
from labflow.identifiers.generator import IdentifierGenerator, ModelFieldSource, ModelSequenceLedger, allocate
from labflow.visits.models import Visit

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "doctor",
    "visit_time",
    "department",
    "referring_organization",
    "vital_signs",
    "medical_history",
    "visit_details",
}


def visit_number_generator() -> IdentifierGenerator:
    return IdentifierGenerator(
        ModelFieldSource(Visit, "visit_number"),
        ledger=ModelSequenceLedger("visit_number"),
        label="visit number",
    )


class VisitService:
    @staticmethod
    def preview_number(*, when: date | None = None) -> str:
        return visit_number_generator().propose(when)

    @staticmethod
    @transaction.atomic
    def create_visit(
        *,
        actor_username: str | None,
        patient,
        visit_date: date | None = None,
        visit_number: str | None = None,
        **fields,
    ) -> Visit:
        visit_date = visit_date or timezone.localdate()
        extra = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}

        def insert(candidate: str) -> Visit:
            return Visit.objects.create(
                visit_number=candidate,
                patient=patient,
                visit_date=visit_date,
                **extra,
            )

        visit = allocate(visit_number_generator(), insert, requested=visit_number, when=visit_date)

        if visit_number and visit.visit_number != visit_number:
            logger.info("Requested visit number %s was replaced by %s", visit_number, visit.visit_number)

        AuditService.log(
            event_code="visit.created",
            entity_type="Visit",
            entity_id=visit.id,
            actor_username=actor_username,
            metadata={"visit_number": visit.visit_number, "patient_ln": patient.ln},
        )
        return visit

    @staticmethod
    @transaction.atomic
    def update_visit(*, actor_username: str | None, visit_id: UUID, data: dict) -> Visit:
        visit = Visit.objects.get(id=visit_id)

        # visit_number, patient and visit_date are fixed once the number exists
        updates = {k: v for k, v in (data or {}).items() if k in UPDATABLE_FIELDS}
        for k, v in updates.items():
            setattr(visit, k, v)
        visit.save()

        AuditService.log(
            event_code="visit.updated",
            entity_type="Visit",
            entity_id=visit.id,
            actor_username=actor_username,
            metadata={"updated_fields": sorted(updates.keys())},
        )
        return visit

    @staticmethod
    @transaction.atomic
    def delete_visit(*, actor_username: str | None, visit_id: UUID) -> None:
        visit = Visit.objects.get(id=visit_id)
        number = visit.visit_number

        try:
            visit.delete()
        except ProtectedError:
            raise ConflictError(_("Visit has lab orders and cannot be deleted."))

        AuditService.log(
            event_code="visit.deleted",
            entity_type="Visit",
            entity_id=visit_id,
            actor_username=actor_username,
            metadata={"visit_number": number},
        )
