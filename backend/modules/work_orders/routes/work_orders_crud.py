"""ShopDesk — Work order CRUD and the assembled work order view."""

from fastapi import APIRouter, Depends
from typing import Optional
import logging

from core.base import WorkOrderStatus
from core.rbac import require_role
from core.schemas import case_param, render
from modules.work_orders.aggregate import WorkOrderAggregateService
from modules.work_orders.dependencies import get_aggregate_service
from modules.work_orders.schemas import WorkOrderCreate, WorkOrderUpdate

log = logging.getLogger("shop.api")

router = APIRouter(prefix="/work-orders", tags=["Work Orders"])


@router.get("")
def list_work_orders(
    status: Optional[WorkOrderStatus] = None,
    customer_id: Optional[int] = None,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    service: WorkOrderAggregateService = Depends(get_aggregate_service),
):
    """List work orders, newest first."""
    return render(service.list(status=status, customer_id=customer_id), case)


@router.post("", status_code=201)
def create_work_order(
    data: WorkOrderCreate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: WorkOrderAggregateService = Depends(get_aggregate_service),
):
    """Create a work order, optionally with its first job lines, atomically."""
    values = data.model_dump(exclude={"job_lines"})
    job_lines = [line.model_dump(exclude_unset=True) for line in data.job_lines or []]
    work_order = service.create_with_job_lines(values, job_lines)
    return render(service.get(work_order.id), case)


@router.get("/{work_order_id}")
def get_work_order(
    work_order_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    service: WorkOrderAggregateService = Depends(get_aggregate_service),
):
    """Work order with customer, vehicle, equipment, job lines, parts and totals."""
    return render(service.get(work_order_id), case)


@router.patch("/{work_order_id}")
def update_work_order(
    work_order_id: int,
    updates: WorkOrderUpdate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: WorkOrderAggregateService = Depends(get_aggregate_service),
):
    service.update(work_order_id, updates.model_dump(exclude_unset=True))
    return render(service.get(work_order_id), case)


@router.delete("/{work_order_id}", status_code=204)
def delete_work_order(
    work_order_id: int,
    current_user: dict = Depends(require_role("operator")),
    service: WorkOrderAggregateService = Depends(get_aggregate_service),
):
    """Delete a work order with all of its job lines and parts."""
    service.delete(work_order_id)
    log.info(f"Work order {work_order_id} deleted by {current_user.get('username')}")
