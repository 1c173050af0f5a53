# labflow/lab/services.py
from __future__ import annotations

import logging
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from labflow.audit.services import AuditService
from labflow.lab.models import (
    ItemType,
    LabGroup,
    LabOrder,
    LabOrderItem,
    LabResult,
    LabTest,
    OrderStatus,
)

logger = logging.getLogger(__name__)


class LabCatalogService:
    """
    Writes for the test catalog (single tests and packages).
    """

    @staticmethod
    @transaction.atomic
    def create_test(*, actor_username: str | None, code: str, name: str, price=0, category: str = "") -> LabTest:
        test = LabTest.objects.create(code=code, name=name, price=price, category=category or "")
        AuditService.log(
            event_code="lab_test.created",
            entity_type="LabTest",
            entity_id=test.id,
            actor_username=actor_username,
            metadata={"code": code},
        )
        return test

    @staticmethod
    @transaction.atomic
    def update_test(*, actor_username: str | None, test_id: UUID, data: dict) -> LabTest:
        test = LabTest.objects.get(id=test_id)
        updates = {k: v for k, v in (data or {}).items() if k in {"code", "name", "price", "category"}}
        for k, v in updates.items():
            setattr(test, k, v)
        test.save()

        AuditService.log(
            event_code="lab_test.updated",
            entity_type="LabTest",
            entity_id=test.id,
            actor_username=actor_username,
            metadata={"updated_fields": sorted(updates.keys())},
        )
        return test

    @staticmethod
    @transaction.atomic
    def delete_test(*, actor_username: str | None, test_id: UUID) -> None:
        test = LabTest.objects.get(id=test_id)
        code = test.code
        test.delete()
        AuditService.log(
            event_code="lab_test.deleted",
            entity_type="LabTest",
            entity_id=test_id,
            actor_username=actor_username,
            metadata={"code": code},
        )

    @staticmethod
    @transaction.atomic
    def create_group(
        *,
        actor_username: str | None,
        code: str,
        name: str,
        price,
        lab_tests: list[LabTest],
    ) -> LabGroup:
        group = LabGroup.objects.create(code=code, name=name, price=price)
        group.lab_tests.set(lab_tests)

        AuditService.log(
            event_code="lab_group.created",
            entity_type="LabGroup",
            entity_id=group.id,
            actor_username=actor_username,
            metadata={"code": code, "tests": len(lab_tests)},
        )
        return group

    @staticmethod
    @transaction.atomic
    def update_group(*, actor_username: str | None, group_id: UUID, data: dict) -> LabGroup:
        group = LabGroup.objects.get(id=group_id)
        data = dict(data or {})

        tests = data.pop("lab_tests", None)
        updates = {k: v for k, v in data.items() if k in {"code", "name", "price"}}
        for k, v in updates.items():
            setattr(group, k, v)
        group.save()

        if tests is not None:
            group.lab_tests.set(tests)
            updates["lab_tests"] = None

        AuditService.log(
            event_code="lab_group.updated",
            entity_type="LabGroup",
            entity_id=group.id,
            actor_username=actor_username,
            metadata={"updated_fields": sorted(updates.keys())},
        )
        return group

    @staticmethod
    @transaction.atomic
    def delete_group(*, actor_username: str | None, group_id: UUID) -> None:
        group = LabGroup.objects.get(id=group_id)
        code = group.code
        group.delete()
        AuditService.log(
            event_code="lab_group.deleted",
            entity_type="LabGroup",
            entity_id=group_id,
            actor_username=actor_username,
            metadata={"code": code},
        )


class LabOrderService:
    @staticmethod
    def _add_lines(order: LabOrder, items: list[dict]) -> list[LabOrderItem]:
        lines = []
        for item in items:
            source = item.get("lab_group") if item["item_type"] == ItemType.PACKAGE else item.get("lab_test")
            lines.append(
                LabOrderItem(
                    order=order,
                    item_type=item["item_type"],
                    lab_test=item.get("lab_test") if item["item_type"] == ItemType.INDIVIDUAL else None,
                    lab_group=item.get("lab_group") if item["item_type"] == ItemType.PACKAGE else None,
                    code=item.get("code") or getattr(source, "code", ""),
                    name=item.get("name") or getattr(source, "name", ""),
                    price=item["price"] if item.get("price") is not None else getattr(source, "price", 0),
                )
            )
        LabOrderItem.objects.bulk_create(lines)
        return lines

    @staticmethod
    @transaction.atomic
    def create_order(
        *,
        actor_username: str | None,
        visit,
        items: list[dict],
        total_amount: Decimal | None = None,
        payment_method: str = "",
        status: str = OrderStatus.PENDING,
    ) -> LabOrder:
        """
        Create an order with its lines. Missing line code/name/price are
        copied from the catalog; a missing total is the sum of line prices.
        """
        order = LabOrder.objects.create(
            visit=visit,
            total_amount=0,
            payment_method=payment_method or "cash",
            status=status,
            order_date=timezone.now(),
        )

        lines = LabOrderService._add_lines(order, items)

        if total_amount is None:
            total_amount = sum((Decimal(line.price) for line in lines), Decimal("0"))
        order.total_amount = total_amount
        order.save(update_fields=["total_amount", "updated_at"])

        AuditService.log(
            event_code="lab_order.created",
            entity_type="LabOrder",
            entity_id=order.id,
            actor_username=actor_username,
            metadata={"visit_number": visit.visit_number, "items": len(lines), "total": str(total_amount)},
        )
        return order

    @staticmethod
    @transaction.atomic
    def set_status(*, actor_username: str | None, order_id: UUID, status: str) -> LabOrder:
        order = LabOrder.objects.select_for_update().get(id=order_id)
        previous = order.status

        if previous != status:
            order.status = status
            order.save(update_fields=["status", "updated_at"])
            AuditService.log(
                event_code="lab_order.status_changed",
                entity_type="LabOrder",
                entity_id=order.id,
                actor_username=actor_username,
                metadata={"from": previous, "to": status},
            )
        return order

    @staticmethod
    @transaction.atomic
    def update_order(*, actor_username: str | None, order_id: UUID, data: dict) -> LabOrder:
        """
        Edit an order in place. ``items`` replaces every line; when it is
        given without ``total_amount`` the total is recomputed from the lines.
        """
        order = LabOrder.objects.select_for_update().get(id=order_id)
        data = dict(data or {})

        items = data.pop("items", None)
        updates = {
            k: v for k, v in data.items()
            if k in {"visit", "total_amount", "payment_method", "status", "order_date"}
        }
        if "payment_method" in updates:
            updates["payment_method"] = updates["payment_method"] or "cash"
        if "total_amount" in updates and updates["total_amount"] is None:
            del updates["total_amount"]

        if items is not None:
            order.items.all().delete()
            lines = LabOrderService._add_lines(order, items)
            if "total_amount" not in updates:
                updates["total_amount"] = sum((Decimal(line.price) for line in lines), Decimal("0"))

        previous_status = order.status
        for k, v in updates.items():
            setattr(order, k, v)
        order.save()

        changed = sorted(updates.keys()) + (["items"] if items is not None else [])
        AuditService.log(
            event_code="lab_order.updated",
            entity_type="LabOrder",
            entity_id=order.id,
            actor_username=actor_username,
            metadata={"updated_fields": changed, "from_status": previous_status, "to_status": order.status},
        )
        return order

    @staticmethod
    @transaction.atomic
    def delete_order(*, actor_username: str | None, order_id: UUID) -> None:
        order = LabOrder.objects.get(id=order_id)
        order.delete()
        AuditService.log(
            event_code="lab_order.deleted",
            entity_type="LabOrder",
            entity_id=order_id,
            actor_username=actor_username,
            metadata={},
        )


class LabResultService:
    @staticmethod
    @transaction.atomic
    def create_result(
        *,
        actor_username: str | None,
        order: LabOrder,
        test_results: list[dict],
        attached_files: list[dict] | None = None,
        technician: str = "",
        notes: str = "",
    ) -> LabResult:
        """
        Record results for an order and mark the order completed.
        """
        rows = [
            {
                "test_id": str(r.get("test_id") or ""),
                "test_name": r.get("test_name") or "",
                "result": r.get("result") or "",
                "reference_range": r.get("reference_range") or "",
                "comment": r.get("comment") or "",
                "status": r.get("status") or "completed",
            }
            for r in test_results
        ]

        result = LabResult.objects.create(
            order=order,
            test_results=rows,
            attached_files=attached_files or [],
            technician=technician or "",
            notes=notes or "",
            result_date=timezone.now(),
        )

        if order.status != OrderStatus.COMPLETED:
            LabOrderService.set_status(
                actor_username=actor_username,
                order_id=order.id,
                status=OrderStatus.COMPLETED,
            )

        AuditService.log(
            event_code="lab_result.created",
            entity_type="LabResult",
            entity_id=result.id,
            actor_username=actor_username,
            metadata={"order_id": str(order.id), "tests": len(rows)},
        )
        logger.info("Results recorded for order %s (%s tests)", order.id, len(rows))
        return result
