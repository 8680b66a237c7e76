"""
modules/work_orders/parts.py — Parts Repository.

Takes form-shaped values (see mappers.py), validates them before touching the
database and keeps total_price == quantity x unit_price at last save.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.base import PartStatus, PartType
from core.config import settings
from core.db_utils import store_operation
from core.errors import NotFoundError, ValidationError
from core.event_bus import get_event_bus, publish
from core.events import PART_CHANGED, WORK_ORDER_UPDATED
from modules.work_orders.mappers import IMMUTABLE_FIELDS, part_form_to_record
from modules.work_orders.models import JobLine, Part, WorkOrder
from modules.work_orders.pricing import (
    DEFAULT_NON_INVENTORY_MARKUP, calculate_customer_price, line_total, refresh_total_cost,
)
from modules.work_orders.validation import normalize_enum, validate_part_record

log = logging.getLogger("shop.repo")


class PartsRepository:

    def __init__(self, db: Session, bus=None, strict: Optional[bool] = None):
        self.db = db
        self.bus = bus or get_event_bus()
        self.strict = settings.strict_enums if strict is None else strict

    # -------------- Reads --------------

    def get_by_work_order(self, work_order_id: int) -> list[Part]:
        return (
            self.db.query(Part)
            .filter(Part.work_order_id == work_order_id)
            .order_by(Part.created_at, Part.id)
            .all()
        )

    def get_by_job_line(self, job_line_id: int) -> list[Part]:
        """Parts attached to a job line. An unknown id simply has none."""
        return (
            self.db.query(Part)
            .filter(Part.job_line_id == job_line_id)
            .order_by(Part.created_at, Part.id)
            .all()
        )

    def get(self, part_id: int) -> Part:
        part = self.db.query(Part).filter(Part.id == part_id).first()
        if not part:
            raise NotFoundError("Part", part_id)
        return part

    # -------------- Helpers --------------

    def _check_job_line(self, work_order_id: int, job_line_id: Optional[int]) -> None:
        if job_line_id is None:
            return
        line = self.db.query(JobLine).filter(JobLine.id == job_line_id).first()
        if not line or line.work_order_id != work_order_id:
            raise ValidationError(
                f"Job line {job_line_id} is not on work order {work_order_id}",
                details={"job_line_id": "must be a job line of the same work order"},
            )

    def _record(self, form_values: dict, *, partial: bool) -> dict:
        record = {k: v for k, v in part_form_to_record(form_values).items() if k not in IMMUTABLE_FIELDS}
        validate_part_record(record, partial=partial)
        if "part_type" in record:
            record["part_type"] = PartType(getattr(record["part_type"], "value", record["part_type"]))
        if not partial or "status" in record:
            record["status"] = normalize_enum(
                record.get("status"), PartStatus, PartStatus.PENDING, field="status", strict=self.strict
            )
        return record

    @staticmethod
    def _fill_prices(record: dict) -> dict:
        """Derive missing prices on create: markup -> customer price -> unit price -> total."""
        cost = record.get("supplier_cost")
        if cost is not None:
            if record.get("markup_percentage") is None and record["part_type"] == PartType.NON_INVENTORY:
                record["markup_percentage"] = DEFAULT_NON_INVENTORY_MARKUP
            computed = calculate_customer_price(cost, record.get("markup_percentage"))
            if record.get("retail_price") is None:
                record["retail_price"] = computed
            if record.get("customer_price") is None:
                record["customer_price"] = computed
        if record.get("unit_price") is None:
            record["unit_price"] = record.get("customer_price") or 0.0
        if record.get("quantity") is None:
            record["quantity"] = 1
        if record.get("total_price") is None:
            record["total_price"] = line_total(record["quantity"], record["unit_price"])
        return record

    # -------------- Writes --------------

    def create(self, work_order_id: int, form_values: dict, job_line_id: Optional[int] = None) -> Part:
        """Validate and insert a part, optionally attached to a job line."""
        work_order = self.db.query(WorkOrder).filter(WorkOrder.id == work_order_id).first()
        if not work_order:
            raise NotFoundError("Work order", work_order_id)

        record = self._record(form_values, partial=False)
        if job_line_id is not None:
            record["job_line_id"] = job_line_id
        self._check_job_line(work_order_id, record.get("job_line_id"))
        record = self._fill_prices(record)

        part = Part(work_order_id=work_order_id, **record)
        with store_operation(self.db, "create part", "work_order", work_order_id):
            self.db.add(part)
            refresh_total_cost(self.db, work_order_id)
        self.db.refresh(part)
        log.info(f"Created part {part.id} ({part.part_number}) on work order {work_order_id}")
        self._notify(work_order_id, part.id, "created")
        return part

    def update(self, part_id: int, form_values: dict) -> Part:
        """Patch supplied fields; id, work_order_id and created_at never change."""
        part = self.get(part_id)
        record = self._record(form_values, partial=True)
        if "job_line_id" in record:
            self._check_job_line(part.work_order_id, record["job_line_id"])

        if "supplier_cost" in record or "markup_percentage" in record:
            cost = record.get("supplier_cost", part.supplier_cost)
            if cost is not None:
                computed = calculate_customer_price(
                    cost, record.get("markup_percentage", part.markup_percentage)
                )
                if record.get("retail_price") is None:
                    record["retail_price"] = computed
                if record.get("customer_price") is None:
                    record["customer_price"] = computed
        # Unit price follows the customer price unless it was edited too
        if record.get("customer_price") is not None and record.get("unit_price") is None:
            record["unit_price"] = record["customer_price"]

        if record.get("total_price") is None:
            record.pop("total_price", None)
            if "quantity" in record or "unit_price" in record:
                record["total_price"] = line_total(
                    record.get("quantity", part.quantity),
                    record.get("unit_price", part.unit_price),
                )

        with store_operation(self.db, "update part", "part", part_id):
            for key, value in record.items():
                setattr(part, key, value)
            refresh_total_cost(self.db, part.work_order_id)
        self.db.refresh(part)
        self._notify(part.work_order_id, part.id, "updated")
        return part

    def delete(self, part_id: int) -> None:
        part = self.get(part_id)
        work_order_id = part.work_order_id
        with store_operation(self.db, "delete part", "part", part_id):
            self.db.delete(part)
            refresh_total_cost(self.db, work_order_id)
        self._notify(work_order_id, part_id, "deleted")

    def assign_to_job_line(self, part_id: int, job_line_id: Optional[int]) -> Part:
        """Move a part onto another job line of its work order, or detach it (None)."""
        part = self.get(part_id)
        self._check_job_line(part.work_order_id, job_line_id)
        with store_operation(self.db, "assign part", "part", part_id):
            part.job_line_id = job_line_id
        self.db.refresh(part)
        self._notify(part.work_order_id, part.id, "assigned")
        return part

    # -------------- Events --------------

    def _notify(self, work_order_id: int, part_id: int, action: str) -> None:
        publish(self.bus, PART_CHANGED, "work_orders",
                work_order_id=work_order_id, part_id=part_id, action=action)
        publish(self.bus, WORK_ORDER_UPDATED, "work_orders",
                work_order_id=work_order_id, fields=["parts"])
