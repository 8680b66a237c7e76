"""ShopDesk — Sequence processing and the processing schedule."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from core.rbac import require_role
from core.schemas import case_param, render
from modules.email_marketing import settings_store
from modules.email_marketing.dependencies import get_function_client, get_sequence_service
from modules.email_marketing.functions import EmailFunctionClient
from modules.email_marketing.schemas import ProcessingSchedule, ProcessRequest
from modules.email_marketing.sequences import SequenceService

router = APIRouter(prefix="/email", tags=["Email Processing"])


@router.post("/processing/run")
def run_processing(
    data: ProcessRequest,
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
    client: EmailFunctionClient = Depends(get_function_client),
):
    """Ask process-email-sequences to send whatever is due now."""
    return service.process(client, sequence_id=data.sequence_id,
                           customer_id=data.customer_id, force=data.force)


@router.post("/enrollments/{enrollment_id}/process")
def process_enrollment(
    enrollment_id: int,
    force: bool = False,
    current_user: dict = Depends(require_role("operator")),
    service: SequenceService = Depends(get_sequence_service),
    client: EmailFunctionClient = Depends(get_function_client),
):
    return service.process_enrollment(client, enrollment_id, force=force)


@router.get("/processing/health")
def processing_health(
    current_user: dict = Depends(require_role("viewer")),
    client: EmailFunctionClient = Depends(get_function_client),
):
    return client.health_check()


@router.get("/settings/processing-schedule")
def get_processing_schedule(
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    return render(settings_store.get_processing_schedule(db), case)


@router.put("/settings/processing-schedule")
def save_processing_schedule(
    schedule: ProcessingSchedule,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    return render(settings_store.save_processing_schedule(db, schedule), case)
