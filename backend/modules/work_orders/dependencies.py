"""
modules/work_orders/dependencies.py — FastAPI providers for the work order services.
"""

from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from modules.work_orders.aggregate import WorkOrderAggregateService
from modules.work_orders.job_lines import JobLineRepository
from modules.work_orders.parts import PartsRepository


def strict_param(
    strict: Optional[bool] = Query(None, description="Reject unknown enum values instead of coercing"),
) -> Optional[bool]:
    return strict


def get_job_line_repo(
    db: Session = Depends(get_db), strict: Optional[bool] = Depends(strict_param)
) -> JobLineRepository:
    return JobLineRepository(db, strict=strict)


def get_parts_repo(
    db: Session = Depends(get_db), strict: Optional[bool] = Depends(strict_param)
) -> PartsRepository:
    return PartsRepository(db, strict=strict)


def get_aggregate_service(
    db: Session = Depends(get_db), strict: Optional[bool] = Depends(strict_param)
) -> WorkOrderAggregateService:
    return WorkOrderAggregateService(db, strict=strict)
