"""
modules/work_orders/aggregate.py — Work Order Aggregate Service.

Assembles a work order with its customer, vehicle, equipment, job lines and
parts. Each related lookup stands alone: a missing or failing one degrades to
fallback values and never fails the whole view. Only a missing work order is
an error.
"""

import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.db_utils import store_operation
from core.errors import NotFoundError, ValidationError
from core.event_bus import get_event_bus, publish
from core.events import WORK_ORDER_CREATED, WORK_ORDER_DELETED, WORK_ORDER_UPDATED
from modules.customers.models import Customer, Vehicle
from modules.equipment.models import EquipmentAsset
from modules.work_orders.job_lines import JobLineRepository
from modules.work_orders.models import WorkOrder
from modules.work_orders.parts import PartsRepository
from modules.work_orders.pricing import classify_price, work_order_totals
from modules.work_orders.schemas import (
    JobLineResponse, PartResponse, WorkOrderSummary, WorkOrderTotalsView, WorkOrderView,
)
from modules.work_orders.validation import WORK_ORDER_ENUMS, reject_nulls

log = logging.getLogger("shop.repo")

UNKNOWN_CUSTOMER = "Unknown Customer"
UNASSIGNED = "Unassigned"


def part_view(part) -> PartResponse:
    """PartResponse with the advisory price tier filled in."""
    view = PartResponse.model_validate(part)
    view.price_tier = classify_price(part.customer_price, part.supplier_suggested_retail)
    return view


def customer_display_name(customer: Optional[Customer]) -> str:
    if customer is None:
        return UNKNOWN_CUSTOMER
    return customer.full_name or UNKNOWN_CUSTOMER


class WorkOrderAggregateService:

    def __init__(self, db: Session, bus=None, strict: Optional[bool] = None):
        self.db = db
        self.bus = bus or get_event_bus()
        self.job_lines = JobLineRepository(db, bus=self.bus, strict=strict)
        self.parts = PartsRepository(db, bus=self.bus, strict=strict)

    # -------------- Lookups --------------

    def _safe(self, what: str, fn: Callable, fallback):
        try:
            return fn()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.warning(f"Lookup of {what} failed, using fallback: {e}")
            return fallback

    def _lookup(self, model, row_id: Optional[int], what: str):
        if row_id is None:
            return None
        return self._safe(
            what, lambda: self.db.query(model).filter(model.id == row_id).first(), None
        )

    def _work_order(self, work_order_id: int) -> WorkOrder:
        work_order = self.db.query(WorkOrder).filter(WorkOrder.id == work_order_id).first()
        if not work_order:
            raise NotFoundError("Work order", work_order_id)
        return work_order

    # -------------- Views --------------

    @staticmethod
    def _summary_fields(work_order: WorkOrder, customer: Optional[Customer]) -> dict:
        return dict(
            id=work_order.id,
            work_order_number=work_order.work_order_number,
            status=work_order.status,
            priority=work_order.priority,
            description=work_order.description,
            customer_id=work_order.customer_id,
            customer_name=customer_display_name(customer),
            technician=work_order.technician_name or UNASSIGNED,
            total_cost=work_order.total_cost or 0,
            due_date=work_order.due_date,
            created_at=work_order.created_at,
        )

    def get(self, work_order_id: int) -> WorkOrderView:
        work_order = self._work_order(work_order_id)
        # Read every column now; a failed lookup below may roll back and expire it
        fields = {
            "vehicle_id": work_order.vehicle_id,
            "equipment_id": work_order.equipment_id,
            "technician_id": work_order.technician_id,
            "estimated_hours": work_order.estimated_hours,
            "updated_at": work_order.updated_at,
        }
        customer = self._lookup(Customer, work_order.customer_id, "customer")
        fields.update(self._summary_fields(work_order, customer))
        vehicle = self._lookup(Vehicle, fields["vehicle_id"], "vehicle")
        equipment = self._lookup(EquipmentAsset, fields["equipment_id"], "equipment")
        job_lines = self._safe("job lines", lambda: self.job_lines.get_all(work_order_id), [])
        parts = self._safe("parts", lambda: self.parts.get_by_work_order(work_order_id), [])

        line_ids = {line.id for line in job_lines}
        part_views = []
        for part in parts:
            view = part_view(part)
            if view.job_line_id not in line_ids:
                view.job_line_id = None
            part_views.append(view)

        totals = work_order_totals(job_lines, parts)

        return WorkOrderView(
            **fields,
            customer_email=(customer.email if customer else None) or "",
            customer_phone=(customer.phone if customer else None) or "",
            customer_address=(customer.address if customer else None) or "",
            customer_city=(customer.city if customer else None) or "",
            customer_state=(customer.state if customer else None) or "",
            customer_zip=(customer.postal_code if customer else None) or "",
            vehicle_year=str(vehicle.year) if vehicle and vehicle.year else "",
            vehicle_make=(vehicle.make if vehicle else None) or "",
            vehicle_model=(vehicle.model if vehicle else None) or "",
            vehicle_vin=(vehicle.vin if vehicle else None) or "",
            vehicle_license_plate=(vehicle.license_plate if vehicle else None) or "",
            equipment_name=(equipment.name if equipment else None) or "",
            job_lines=[JobLineResponse.model_validate(line) for line in job_lines],
            parts=part_views,
            totals=WorkOrderTotalsView(**totals.to_dict()),
        )

    def list(self, status: Optional[str] = None, customer_id: Optional[int] = None) -> list[WorkOrderSummary]:
        query = self.db.query(WorkOrder)
        if status:
            query = query.filter(WorkOrder.status == status)
        if customer_id is not None:
            query = query.filter(WorkOrder.customer_id == customer_id)
        work_orders = query.order_by(WorkOrder.created_at.desc(), WorkOrder.id.desc()).all()

        customer_ids = {wo.customer_id for wo in work_orders if wo.customer_id is not None}
        customers = {}
        if customer_ids:
            rows = self._safe(
                "customers",
                lambda: self.db.query(Customer).filter(Customer.id.in_(customer_ids)).all(),
                [],
            )
            customers = {c.id: c for c in rows}

        return [
            WorkOrderSummary(**self._summary_fields(wo, customers.get(wo.customer_id)))
            for wo in work_orders
        ]

    # -------------- Writes --------------

    def create_with_job_lines(self, values: dict, job_lines: Optional[List[dict]] = None) -> WorkOrder:
        """Insert a work order and its initial job lines in one transaction."""
        work_order = WorkOrder(**values)
        with store_operation(self.db, "create work order", "work_order", None):
            self.db.add(work_order)
            self.db.flush()
            if not work_order.work_order_number:
                work_order.work_order_number = f"WO-{work_order.id:06d}"
            for position, line_values in enumerate(job_lines or [], start=1):
                self.db.add(self.job_lines.build(work_order.id, line_values, position))
            self.db.flush()
            total = sum(line.total_amount or 0 for line in self.job_lines.get_all(work_order.id))
            work_order.total_cost = round(total, 2)
        self.db.refresh(work_order)
        log.info(f"Created work order {work_order.work_order_number} with {len(job_lines or [])} job lines")
        publish(self.bus, WORK_ORDER_CREATED, "work_orders", work_order_id=work_order.id)
        return work_order

    def update(self, work_order_id: int, values: dict) -> WorkOrder:
        work_order = self._work_order(work_order_id)
        if "total_cost" in values:
            raise ValidationError(
                "total_cost is derived from job lines and parts",
                details={"total_cost": "read-only"},
            )
        reject_nulls(values, WORK_ORDER_ENUMS, "work order")
        with store_operation(self.db, "update work order", "work_order", work_order_id):
            for key, value in values.items():
                setattr(work_order, key, value)
        self.db.refresh(work_order)
        publish(self.bus, WORK_ORDER_UPDATED, "work_orders",
                work_order_id=work_order_id, fields=sorted(values))
        return work_order

    def delete(self, work_order_id: int) -> None:
        """Delete a work order together with its job lines and parts."""
        work_order = self._work_order(work_order_id)
        with store_operation(self.db, "delete work order", "work_order", work_order_id):
            self.db.delete(work_order)
        log.info(f"Deleted work order {work_order_id}")
        publish(self.bus, WORK_ORDER_DELETED, "work_orders", work_order_id=work_order_id)
