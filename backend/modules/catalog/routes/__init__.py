"""Catalog routes package — assembles all sub-routers."""

from fastapi import APIRouter
from .categories import router as categories_router
from .products import router as products_router

router = APIRouter()
router.include_router(categories_router)
router.include_router(products_router)
