"""ShopDesk — Job line table: CRUD, draft upsert, reorder, completion and status."""

from fastapi import APIRouter, Body, Depends, Query
from typing import Literal

from core.rbac import actor_name, require_role
from core.schemas import case_param, render
from modules.work_orders.dependencies import get_job_line_repo
from modules.work_orders.job_lines import JobLineRepository
from modules.work_orders.schemas import (
    JobLineCompletion, JobLineCreate, JobLineReorder, JobLineResponse,
    JobLineStatusUpdate, JobLineUpdate, JobLineUpsert,
)

router = APIRouter(tags=["Job Lines"])


def _out(line, case: str):
    return render(JobLineResponse.model_validate(line), case)


# -------------- Per work order --------------

@router.get("/work-orders/{work_order_id}/job-lines")
def list_job_lines(
    work_order_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    repo: JobLineRepository = Depends(get_job_line_repo),
):
    """Job lines in display order."""
    return [_out(line, case) for line in repo.get_all(work_order_id)]


@router.post("/work-orders/{work_order_id}/job-lines", status_code=201)
def create_job_line(
    work_order_id: int,
    data: JobLineCreate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    repo: JobLineRepository = Depends(get_job_line_repo),
):
    return _out(repo.create(work_order_id, data.model_dump(exclude_unset=True)), case)


@router.put("/work-orders/{work_order_id}/job-lines/upsert")
def upsert_job_line(
    work_order_id: int,
    item: JobLineUpsert = Body(...),
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    repo: JobLineRepository = Depends(get_job_line_repo),
):
    """Save an editor row: drafts are inserted, persisted rows are patched."""
    return _out(repo.upsert(work_order_id, item), case)


@router.patch("/work-orders/{work_order_id}/job-lines/reorder")
def reorder_job_lines(
    work_order_id: int,
    data: JobLineReorder,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    repo: JobLineRepository = Depends(get_job_line_repo),
):
    """Renumber display_order 1..N in the given order. All or nothing."""
    return [_out(line, case) for line in repo.reorder(work_order_id, data.ordered_ids)]


# -------------- Single job line --------------

@router.patch("/job-lines/{job_line_id}")
def update_job_line(
    job_line_id: int,
    data: JobLineUpdate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    repo: JobLineRepository = Depends(get_job_line_repo),
):
    return _out(repo.update(job_line_id, data.model_dump(exclude_unset=True)), case)


@router.delete("/job-lines/{job_line_id}", status_code=204)
def delete_job_line(
    job_line_id: int,
    parts: Literal["detach", "delete"] = Query("detach"),
    current_user: dict = Depends(require_role("operator")),
    repo: JobLineRepository = Depends(get_job_line_repo),
):
    """Delete a job line. Its parts stay on the work order unless parts=delete."""
    repo.delete(job_line_id, parts=parts)


@router.post("/job-lines/{job_line_id}/completion")
def set_job_line_completion(
    job_line_id: int,
    data: JobLineCompletion,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    repo: JobLineRepository = Depends(get_job_line_repo),
):
    completed_by = data.completed_by or actor_name(current_user)
    return _out(repo.set_completion(job_line_id, data.completed, completed_by), case)


@router.patch("/job-lines/{job_line_id}/status")
def set_job_line_status(
    job_line_id: int,
    data: JobLineStatusUpdate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    repo: JobLineRepository = Depends(get_job_line_repo),
):
    return _out(repo.set_status(job_line_id, data.status), case)
