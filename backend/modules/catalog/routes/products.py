"""ShopDesk — Catalog products."""

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from core.db import get_db
from core.errors import ConflictError, NotFoundError, ValidationError
from core.rbac import require_role
from modules.catalog.models import Product, ProductCategory
from modules.catalog.schemas import ProductCreate, ProductUpdate, ProductResponse, StockAdjust

log = logging.getLogger("shop.api")

router = APIRouter(prefix="/catalog/products", tags=["Catalog"])


def _response(product: Product) -> ProductResponse:
    resp = ProductResponse.model_validate(product)
    resp.category_name = product.category.name if product.category else None
    return resp


def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product", product_id)
    return product


def _check_sku(db: Session, sku: Optional[str], product_id: Optional[int] = None):
    if not sku:
        return
    query = db.query(Product).filter(Product.sku == sku)
    if product_id is not None:
        query = query.filter(Product.id != product_id)
    if query.first():
        raise ConflictError(f"SKU '{sku}' already exists", details={"sku": "already in use"})


@router.get("", response_model=List[ProductResponse])
def list_products(
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    active_only: bool = False,
    current_user: dict = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    """List products, filtered by name/SKU search, category and active flag."""
    query = db.query(Product)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if active_only:
        query = query.filter(Product.is_active.is_(True))
    return [_response(p) for p in query.order_by(Product.name).all()]


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(
    data: ProductCreate,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    _check_sku(db, data.sku)
    if data.category_id is not None and not db.query(ProductCategory).filter(ProductCategory.id == data.category_id).first():
        raise NotFoundError("Category", data.category_id)
    product = Product(**data.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)
    return _response(product)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    current_user: dict = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    return _response(_get_product_or_404(db, product_id))


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    updates: ProductUpdate,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    product = _get_product_or_404(db, product_id)
    data = updates.model_dump(exclude_unset=True)
    _check_sku(db, data.get("sku"), product_id)
    for key, value in data.items():
        setattr(product, key, value)
    db.commit()
    db.refresh(product)
    return _response(product)


@router.post("/{product_id}/stock", response_model=ProductResponse)
def adjust_stock(
    product_id: int,
    data: StockAdjust,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    """Add (positive delta) or remove (negative delta) stock. Never goes below zero."""
    product = _get_product_or_404(db, product_id)
    new_quantity = (product.stock_quantity or 0) + data.delta
    if new_quantity < 0:
        raise ValidationError(
            f"Insufficient stock: have {product.stock_quantity}, requested {-data.delta}",
            details={"delta": "would take stock below zero"},
        )
    product.stock_quantity = new_quantity
    db.commit()
    db.refresh(product)
    log.info(f"Stock for product {product_id} adjusted by {data.delta} to {new_quantity}")
    return _response(product)


@router.delete("/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    current_user: dict = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    product = _get_product_or_404(db, product_id)
    db.delete(product)
    db.commit()
