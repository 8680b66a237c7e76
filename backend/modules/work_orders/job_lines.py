"""
modules/work_orders/job_lines.py — Job Line Repository.

Owns every write to work_order_job_lines. Keeps two things true at last save:

  - total_amount == estimated_hours x labor_rate unless a total was given
  - after reorder(), display_order over a work order's lines is exactly 1..N

Deleting a line leaves the remaining display_order values as they were; the
next reorder compacts them.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.base import JobLineStatus, LaborRateType
from core.config import settings
from core.db_utils import store_operation
from core.errors import NotFoundError, ValidationError
from core.event_bus import get_event_bus, publish
from core.events import JOB_LINE_CHANGED, WORK_ORDER_UPDATED
from modules.work_orders.mappers import IMMUTABLE_FIELDS, job_line_form_to_record
from modules.work_orders.models import JobLine, Part, WorkOrder
from modules.work_orders.pricing import labor_total, refresh_total_cost
from modules.work_orders.validation import JOB_LINE_AMOUNTS, normalize_enum

log = logging.getLogger("shop.repo")

PART_DELETE_MODES = ("detach", "delete")


def _payload(item) -> dict:
    """Field values carried by an upsert item, minus its tag and identity."""
    if hasattr(item, "model_dump"):
        data = item.model_dump(exclude_unset=True)
    else:
        data = dict(item)
    for key in ("kind", "draft_key", "id"):
        data.pop(key, None)
    return data


class JobLineRepository:
    """CRUD, ordering and completion for job lines.

    strict controls unrecognised status / labor_rate_type values: coerced to
    the default when False, rejected with InvalidEnumValue when True.
    """

    def __init__(self, db: Session, bus=None, strict: Optional[bool] = None):
        self.db = db
        self.bus = bus or get_event_bus()
        self.strict = settings.strict_enums if strict is None else strict

    # -------------- Reads --------------

    def get_all(self, work_order_id: int) -> list[JobLine]:
        return (
            self.db.query(JobLine)
            .filter(JobLine.work_order_id == work_order_id)
            .order_by(JobLine.display_order, JobLine.id)
            .all()
        )

    def get(self, job_line_id: int) -> JobLine:
        line = self.db.query(JobLine).filter(JobLine.id == job_line_id).first()
        if not line:
            raise NotFoundError("Job line", job_line_id)
        return line

    def _work_order(self, work_order_id: int) -> WorkOrder:
        work_order = self.db.query(WorkOrder).filter(WorkOrder.id == work_order_id).first()
        if not work_order:
            raise NotFoundError("Work order", work_order_id)
        return work_order

    def next_display_order(self, work_order_id: int) -> int:
        current = (
            self.db.query(func.max(JobLine.display_order))
            .filter(JobLine.work_order_id == work_order_id)
            .scalar()
        )
        return (current or 0) + 1

    # -------------- Field preparation --------------

    def normalize_enum(self, value, enum_cls, default, field: str):
        return normalize_enum(value, enum_cls, default, field=field, strict=self.strict)

    def _prepare(self, values: dict, *, creating: bool) -> dict:
        record = {k: v for k, v in job_line_form_to_record(values).items() if k not in IMMUTABLE_FIELDS}

        errors = {}
        if (creating or "name" in record) and not (record.get("name") or "").strip():
            errors["name"] = "Job line name is required"
        for key in ("estimated_hours", "labor_rate", "total_amount"):
            value = record.get(key)
            if value is not None and value < 0:
                errors[key] = "must not be negative"
        if not creating:
            for key in JOB_LINE_AMOUNTS:
                if key in record and record[key] is None:
                    errors[key] = "must not be null"
        if errors:
            raise ValidationError("Invalid job line", details=errors)

        if creating or "status" in record:
            record["status"] = self.normalize_enum(
                record.get("status"), JobLineStatus, JobLineStatus.PENDING, "status"
            )
        if creating or "labor_rate_type" in record:
            record["labor_rate_type"] = self.normalize_enum(
                record.get("labor_rate_type"), LaborRateType, LaborRateType.STANDARD, "labor_rate_type"
            )
        return record

    @staticmethod
    def _apply_completion(line: JobLine, completed: bool, completed_by: Optional[str] = None) -> None:
        # Un-completing always lands on pending, even if the line was on hold before
        line.is_work_completed = completed
        if completed:
            line.completion_date = datetime.now(timezone.utc)
            line.completed_by = completed_by
            line.status = JobLineStatus.COMPLETED
        else:
            line.completion_date = None
            line.completed_by = None
            line.status = JobLineStatus.PENDING

    def build(self, work_order_id: int, values: dict, display_order: Optional[int] = None) -> JobLine:
        """Validate values and return an unsaved JobLine."""
        record = self._prepare(values, creating=True)
        if record.get("estimated_hours") is None:
            record["estimated_hours"] = 0
        if record.get("labor_rate") is None:
            record["labor_rate"] = settings.default_labor_rate
        if record.get("total_amount") is None:
            record["total_amount"] = labor_total(record["estimated_hours"], record["labor_rate"])
        if record.get("display_order") is None:
            record["display_order"] = display_order or 1
        completed = record.pop("is_work_completed", None)
        completed_by = record.pop("completed_by", None)
        record.pop("completion_date", None)

        line = JobLine(work_order_id=work_order_id, **record)
        if completed:
            self._apply_completion(line, True, completed_by)
        else:
            line.is_work_completed = False
        return line

    # -------------- Writes --------------

    def create(self, work_order_id: int, values: dict) -> JobLine:
        """Insert a job line at the end of the work order's list."""
        self._work_order(work_order_id)
        line = self.build(work_order_id, values, self.next_display_order(work_order_id))
        with store_operation(self.db, "create job line", "work_order", work_order_id):
            self.db.add(line)
            refresh_total_cost(self.db, work_order_id)
        self.db.refresh(line)
        log.info(f"Created job line {line.id} on work order {work_order_id}")
        self._notify(line.work_order_id, line.id, "created")
        return line

    def update(self, job_line_id: int, values: dict) -> JobLine:
        """Patch the supplied fields only."""
        line = self.get(job_line_id)
        record = self._prepare(values, creating=False)

        if record.get("total_amount") is None:
            record.pop("total_amount", None)
            if "estimated_hours" in record or "labor_rate" in record:
                record["total_amount"] = labor_total(
                    record.get("estimated_hours", line.estimated_hours),
                    record.get("labor_rate", line.labor_rate),
                )

        completed = record.pop("is_work_completed", None)
        completed_by = record.pop("completed_by", None)
        record.pop("completion_date", None)

        with store_operation(self.db, "update job line", "job_line", job_line_id):
            for key, value in record.items():
                setattr(line, key, value)
            if completed is not None and completed != line.is_work_completed:
                self._apply_completion(line, completed, completed_by)
            refresh_total_cost(self.db, line.work_order_id)
        self.db.refresh(line)
        self._notify(line.work_order_id, line.id, "updated")
        return line

    def upsert(self, work_order_id: int, item) -> JobLine:
        """Create a draft or update a persisted line.

        item is a JobLineDraft (kind="draft") or PersistedJobLine
        (kind="persisted"), as a schema object or a plain dict.
        """
        kind = getattr(item, "kind", None) or (item.get("kind") if isinstance(item, dict) else None)
        values = _payload(item)
        if kind == "draft":
            return self.create(work_order_id, values)
        if kind == "persisted":
            line_id = getattr(item, "id", None) if not isinstance(item, dict) else item.get("id")
            line = self.get(line_id)
            if line.work_order_id != work_order_id:
                raise ValidationError(
                    f"Job line {line_id} belongs to another work order",
                    details={"id": "not on this work order"},
                )
            return self.update(line_id, values)
        raise ValidationError("Unknown job line kind", details={"kind": "must be draft or persisted"})

    def delete(self, job_line_id: int, parts: str = "detach") -> None:
        """Hard-delete a job line; its parts are detached or deleted in the same transaction."""
        if parts not in PART_DELETE_MODES:
            raise ValidationError(
                f"Unknown parts mode {parts!r}",
                details={"parts": f"must be one of {', '.join(PART_DELETE_MODES)}"},
            )
        line = self.get(job_line_id)
        work_order_id = line.work_order_id
        with store_operation(self.db, "delete job line", "job_line", job_line_id):
            part_query = self.db.query(Part).filter(Part.job_line_id == job_line_id)
            if parts == "delete":
                affected = part_query.delete(synchronize_session="fetch")
            else:
                affected = part_query.update({Part.job_line_id: None}, synchronize_session="fetch")
            self.db.delete(line)
            refresh_total_cost(self.db, work_order_id)
        log.info(f"Deleted job line {job_line_id} ({parts} {affected} parts)")
        self._notify(work_order_id, job_line_id, "deleted")

    def reorder(self, work_order_id: int, ordered_ids: list[int]) -> list[JobLine]:
        """Set display_order = position (1-based) for every line, atomically.

        ordered_ids must name each of the work order's lines exactly once.
        """
        self._work_order(work_order_id)
        lines = {line.id: line for line in self.get_all(work_order_id)}
        ids = [int(i) for i in ordered_ids]
        if len(ids) != len(set(ids)) or set(ids) != set(lines):
            missing = sorted(set(lines) - set(ids))
            unknown = sorted(set(ids) - set(lines))
            raise ValidationError(
                "Reorder must list every job line of the work order exactly once",
                details={"ordered_ids": f"missing={missing} unknown={unknown}"},
            )

        with store_operation(self.db, "reorder job lines", "work_order", work_order_id):
            for position, line_id in enumerate(ids, start=1):
                lines[line_id].display_order = position
        self._notify(work_order_id, None, "reordered")
        return self.get_all(work_order_id)

    def set_completion(self, job_line_id: int, completed: bool, completed_by: Optional[str] = None) -> JobLine:
        line = self.get(job_line_id)
        with store_operation(self.db, "update job line completion", "job_line", job_line_id):
            self._apply_completion(line, completed, completed_by)
        self.db.refresh(line)
        self._notify(line.work_order_id, line.id, "completed" if completed else "reopened")
        return line

    def set_status(self, job_line_id: int, status) -> JobLine:
        """Any transition is allowed; the value itself is validated."""
        line = self.get(job_line_id)
        new_status = self.normalize_enum(status, JobLineStatus, JobLineStatus.PENDING, "status")
        with store_operation(self.db, "update job line status", "job_line", job_line_id):
            line.status = new_status
        self.db.refresh(line)
        self._notify(line.work_order_id, line.id, "status")
        return line

    # -------------- Events --------------

    def _notify(self, work_order_id: int, job_line_id: Optional[int], action: str) -> None:
        publish(self.bus, JOB_LINE_CHANGED, "work_orders",
                work_order_id=work_order_id, job_line_id=job_line_id, action=action)
        publish(self.bus, WORK_ORDER_UPDATED, "work_orders",
                work_order_id=work_order_id, fields=["job_lines"])
