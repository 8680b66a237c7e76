"""ShopDesk — Maintenance item / type presets."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from core.db import get_db
from core.rbac import require_role
from modules.presets import service
from modules.presets.schemas import PresetCreate, PresetResponse

router = APIRouter(prefix="/presets", tags=["Presets"])


@router.get("/{kind}", response_model=List[PresetResponse])
def list_presets(
    kind: str,
    category: Optional[str] = None,
    current_user: dict = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    """kind is "items" or "types"."""
    return service.list_presets(db, service.preset_model(kind), category)


@router.post("/{kind}", response_model=PresetResponse, status_code=201)
def create_preset(
    kind: str,
    data: PresetCreate,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    """Save as new preset; returns the existing one if the name is taken."""
    return service.create_preset(
        db, service.preset_model(kind), data.name, data.category, data.description
    )


@router.post("/{kind}/{preset_id}/use", response_model=PresetResponse)
def use_preset(
    kind: str,
    preset_id: int,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    return service.record_usage(db, service.preset_model(kind), preset_id)


@router.delete("/{kind}/{preset_id}", status_code=204)
def delete_preset(
    kind: str,
    preset_id: int,
    current_user: dict = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    service.delete_preset(db, service.preset_model(kind), preset_id)
