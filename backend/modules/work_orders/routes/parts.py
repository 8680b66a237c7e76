"""ShopDesk — Work order parts and price preview."""

from fastapi import APIRouter, Depends
from typing import Optional

from core.rbac import require_role
from core.schemas import case_param, render
from modules.work_orders.aggregate import part_view
from modules.work_orders.dependencies import get_parts_repo
from modules.work_orders.parts import PartsRepository
from modules.work_orders.pricing import calculate_customer_price, classify_price
from modules.work_orders.schemas import PartAssign, PartForm, PricePreview, PricePreviewRequest

router = APIRouter(tags=["Parts"])


@router.get("/work-orders/{work_order_id}/parts")
def list_work_order_parts(
    work_order_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    repo: PartsRepository = Depends(get_parts_repo),
):
    return render([part_view(p) for p in repo.get_by_work_order(work_order_id)], case)


@router.get("/job-lines/{job_line_id}/parts")
def list_job_line_parts(
    job_line_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    repo: PartsRepository = Depends(get_parts_repo),
):
    """Parts on a job line; empty for a deleted or unknown line."""
    return render([part_view(p) for p in repo.get_by_job_line(job_line_id)], case)


@router.post("/work-orders/{work_order_id}/parts", status_code=201)
def create_part(
    work_order_id: int,
    form: PartForm,
    job_line_id: Optional[int] = None,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    repo: PartsRepository = Depends(get_parts_repo),
):
    """Add a part from the part entry form (camelCase or snake_case keys)."""
    part = repo.create(work_order_id, form.to_form(), job_line_id=job_line_id)
    return render(part_view(part), case)


@router.post("/parts/price-preview")
def price_preview(
    data: PricePreviewRequest,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
):
    """Customer price for a cost and markup, and how it compares to suggested retail."""
    customer_price = data.customer_price
    if customer_price is None:
        customer_price = calculate_customer_price(data.supplier_cost, data.markup_percentage)
    preview = PricePreview(
        customer_price=customer_price,
        price_tier=classify_price(customer_price, data.supplier_suggested_retail),
    )
    return render(preview, case)


@router.patch("/parts/{part_id}")
def update_part(
    part_id: int,
    form: PartForm,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    repo: PartsRepository = Depends(get_parts_repo),
):
    return render(part_view(repo.update(part_id, form.to_form())), case)


@router.patch("/parts/{part_id}/job-line")
def assign_part(
    part_id: int,
    data: PartAssign,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    repo: PartsRepository = Depends(get_parts_repo),
):
    """Move a part to another job line of the same work order, or detach it."""
    return render(part_view(repo.assign_to_job_line(part_id, data.job_line_id)), case)


@router.delete("/parts/{part_id}", status_code=204)
def delete_part(
    part_id: int,
    current_user: dict = Depends(require_role("operator")),
    repo: PartsRepository = Depends(get_parts_repo),
):
    repo.delete(part_id)
