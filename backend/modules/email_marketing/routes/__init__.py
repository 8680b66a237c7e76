"""Email marketing routes package — assembles all sub-routers."""

from fastapi import APIRouter
from .templates import router as templates_router
from .campaigns import router as campaigns_router
from .sequences import router as sequences_router
from .processing import router as processing_router

router = APIRouter()
router.include_router(templates_router)
router.include_router(campaigns_router)
router.include_router(sequences_router)
router.include_router(processing_router)
