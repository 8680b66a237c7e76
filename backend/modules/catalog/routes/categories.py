"""ShopDesk — Product categories."""

import re

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from core.db import get_db
from core.errors import ConflictError, NotFoundError, ValidationError
from core.rbac import require_role
from modules.catalog.models import ProductCategory
from modules.catalog.schemas import CategoryCreate, CategoryUpdate, CategoryResponse

router = APIRouter(prefix="/catalog/categories", tags=["Catalog"])


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


@router.get("", response_model=List[CategoryResponse])
def list_categories(current_user: dict = Depends(require_role("viewer")), db: Session = Depends(get_db)):
    return db.query(ProductCategory).order_by(ProductCategory.name).all()


@router.post("", response_model=CategoryResponse, status_code=201)
def create_category(
    data: CategoryCreate,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    """Create a category; the slug is derived from the name when not given."""
    slug = data.slug or slugify(data.name)
    if db.query(ProductCategory).filter(ProductCategory.slug == slug).first():
        raise ConflictError(f"Category slug '{slug}' already exists", details={"slug": "already in use"})
    if data.parent_id is not None and not db.query(ProductCategory).filter(ProductCategory.id == data.parent_id).first():
        raise NotFoundError("Parent category", data.parent_id)
    category = ProductCategory(name=data.name, slug=slug, description=data.description, parent_id=data.parent_id)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    updates: CategoryUpdate,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    category = db.query(ProductCategory).filter(ProductCategory.id == category_id).first()
    if not category:
        raise NotFoundError("Category", category_id)
    data = updates.model_dump(exclude_unset=True)
    if data.get("parent_id") == category_id:
        raise ValidationError("A category cannot be its own parent",
                              details={"parent_id": "must differ from the category"})
    for key, value in data.items():
        setattr(category, key, value)
    db.commit()
    db.refresh(category)
    return category


@router.delete("/{category_id}", status_code=204)
def delete_category(
    category_id: int,
    current_user: dict = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    """Delete a category. Its products become uncategorised."""
    category = db.query(ProductCategory).filter(ProductCategory.id == category_id).first()
    if not category:
        raise NotFoundError("Category", category_id)
    db.query(ProductCategory).filter(ProductCategory.parent_id == category_id).update(
        {ProductCategory.parent_id: None}, synchronize_session=False
    )
    for product in category.products:
        product.category_id = None
    db.delete(category)
    db.commit()
