"""Customers routes package."""

from fastapi import APIRouter
from .customers_crud import router as customers_router

router = APIRouter()
router.include_router(customers_router)
