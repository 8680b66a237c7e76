"""ShopDesk — Equipment asset CRUD."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from core.db import get_db
from core.errors import NotFoundError
from core.rbac import require_role
from modules.equipment.models import EquipmentAsset
from modules.equipment.schemas import EquipmentCreate, EquipmentUpdate, EquipmentResponse

router = APIRouter(prefix="/equipment", tags=["Equipment"])


@router.get("", response_model=List[EquipmentResponse])
def list_equipment(
    status: Optional[str] = None,
    asset_type: Optional[str] = None,
    customer_id: Optional[int] = None,
    current_user: dict = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    """List equipment with optional filters."""
    query = db.query(EquipmentAsset)
    if status:
        query = query.filter(EquipmentAsset.status == status)
    if asset_type:
        query = query.filter(EquipmentAsset.asset_type == asset_type)
    if customer_id is not None:
        query = query.filter(EquipmentAsset.customer_id == customer_id)
    return query.order_by(EquipmentAsset.name).all()


@router.post("", response_model=EquipmentResponse, status_code=201)
def create_equipment(
    data: EquipmentCreate,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    asset = EquipmentAsset(**data.model_dump())
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return asset


@router.get("/{asset_id}", response_model=EquipmentResponse)
def get_equipment(
    asset_id: int,
    current_user: dict = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    asset = db.query(EquipmentAsset).filter(EquipmentAsset.id == asset_id).first()
    if not asset:
        raise NotFoundError("Equipment", asset_id)
    return asset


@router.patch("/{asset_id}", response_model=EquipmentResponse)
def update_equipment(
    asset_id: int,
    updates: EquipmentUpdate,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    asset = db.query(EquipmentAsset).filter(EquipmentAsset.id == asset_id).first()
    if not asset:
        raise NotFoundError("Equipment", asset_id)
    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(asset, key, value)
    db.commit()
    db.refresh(asset)
    return asset


@router.delete("/{asset_id}", status_code=204)
def delete_equipment(
    asset_id: int,
    current_user: dict = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    asset = db.query(EquipmentAsset).filter(EquipmentAsset.id == asset_id).first()
    if not asset:
        raise NotFoundError("Equipment", asset_id)
    db.delete(asset)
    db.commit()
