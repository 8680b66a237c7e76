"""ShopDesk — Email sequences, steps and enrollments."""

from fastapi import APIRouter, Depends
from typing import Optional

from core.base import EnrollmentStatus
from core.rbac import require_role
from core.schemas import case_param, render
from modules.email_marketing.dependencies import get_sequence_service
from modules.email_marketing.schemas import (
    EnrollmentCreate, EnrollmentResponse, SequenceCreate, SequenceResponse, SequenceUpdate,
    StepCreate, StepReorder, StepResponse, StepUpdate,
)
from modules.email_marketing.sequences import SequenceService

router = APIRouter(prefix="/email", tags=["Email Sequences"])


def _sequence(sequence, case: str):
    return render(SequenceResponse.model_validate(sequence), case)


@router.get("/sequences")
def list_sequences(
    active_only: bool = False,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    service: SequenceService = Depends(get_sequence_service),
):
    return render([SequenceResponse.model_validate(s) for s in service.list_sequences(active_only)], case)


@router.post("/sequences", status_code=201)
def create_sequence(
    data: SequenceCreate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
):
    steps = [step.model_dump() for step in data.steps]
    return _sequence(service.create(data.model_dump(exclude={"steps"}), steps), case)


@router.get("/sequences/{sequence_id}")
def get_sequence(
    sequence_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    service: SequenceService = Depends(get_sequence_service),
):
    return _sequence(service.get(sequence_id), case)


@router.patch("/sequences/{sequence_id}")
def update_sequence(
    sequence_id: int,
    updates: SequenceUpdate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
):
    return _sequence(service.update(sequence_id, updates.model_dump(exclude_unset=True)), case)


@router.delete("/sequences/{sequence_id}", status_code=204)
def delete_sequence(
    sequence_id: int,
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
):
    service.delete(sequence_id)


# -------------- Steps --------------

@router.post("/sequences/{sequence_id}/steps", status_code=201)
def add_step(
    sequence_id: int,
    data: StepCreate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
):
    """Append a step at the end of the sequence."""
    return render(StepResponse.model_validate(service.add_step(sequence_id, data.model_dump())), case)


@router.patch("/sequences/{sequence_id}/steps/reorder")
def reorder_steps(
    sequence_id: int,
    data: StepReorder,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
):
    steps = service.reorder_steps(sequence_id, data.ordered_ids)
    return render([StepResponse.model_validate(s) for s in steps], case)


@router.patch("/sequence-steps/{step_id}")
def update_step(
    step_id: int,
    updates: StepUpdate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
):
    step = service.update_step(step_id, updates.model_dump(exclude_unset=True))
    return render(StepResponse.model_validate(step), case)


@router.delete("/sequence-steps/{step_id}", status_code=204)
def delete_step(
    step_id: int,
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
):
    service.delete_step(step_id)


# -------------- Enrollments --------------

@router.get("/sequences/{sequence_id}/enrollments")
def list_enrollments(
    sequence_id: int,
    status: Optional[EnrollmentStatus] = None,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    service: SequenceService = Depends(get_sequence_service),
):
    service.get(sequence_id)
    return render([EnrollmentResponse.model_validate(e) for e in service.enrollments(sequence_id, status)], case)


@router.post("/sequences/{sequence_id}/enrollments", status_code=201)
def enroll_customer(
    sequence_id: int,
    data: EnrollmentCreate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
):
    return render(EnrollmentResponse.model_validate(service.enroll(sequence_id, data.customer_id)), case)


@router.post("/enrollments/{enrollment_id}/pause")
def pause_enrollment(
    enrollment_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
):
    return render(EnrollmentResponse.model_validate(service.pause(enrollment_id)), case)


@router.post("/enrollments/{enrollment_id}/resume")
def resume_enrollment(
    enrollment_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
):
    return render(EnrollmentResponse.model_validate(service.resume(enrollment_id)), case)


@router.post("/enrollments/{enrollment_id}/cancel")
def cancel_enrollment(
    enrollment_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
):
    return render(EnrollmentResponse.model_validate(service.cancel(enrollment_id)), case)
