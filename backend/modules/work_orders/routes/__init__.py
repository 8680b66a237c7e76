"""Work orders routes package — assembles all sub-routers."""

from fastapi import APIRouter
from .work_orders_crud import router as work_orders_router
from .job_lines import router as job_lines_router
from .parts import router as parts_router

router = APIRouter()
router.include_router(work_orders_router)
router.include_router(job_lines_router)
router.include_router(parts_router)
