"""Presets routes package."""

from fastapi import APIRouter
from .presets import router as presets_router

router = APIRouter()
router.include_router(presets_router)
