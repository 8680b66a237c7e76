"""
modules/presets/service.py — List, add-as-new and usage counting for presets.
"""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.db_utils import store_operation
from core.errors import NotFoundError, ValidationError
from modules.presets.models import MaintenanceItemPreset, MaintenanceTypePreset

log = logging.getLogger("shop.repo")

PRESET_KINDS = {
    "items": MaintenanceItemPreset,
    "types": MaintenanceTypePreset,
}


def preset_model(kind: str):
    try:
        return PRESET_KINDS[kind]
    except KeyError:
        raise ValidationError(
            f"Unknown preset kind {kind!r}",
            details={"kind": f"must be one of {', '.join(PRESET_KINDS)}"},
        )


def list_presets(db: Session, model, category: Optional[str] = None) -> list:
    """Most used first, then alphabetical."""
    query = db.query(model)
    if category:
        query = query.filter(model.category == category)
    return query.order_by(model.usage_count.desc(), model.name).all()


def create_preset(db: Session, model, name: str, category: Optional[str] = None,
                  description: Optional[str] = None):
    """Add a preset. An existing preset with the same name (any case) is returned as is."""
    name = name.strip()
    if not name:
        raise ValidationError("Preset name is required", details={"name": "required"})
    existing = db.query(model).filter(func.lower(model.name) == name.lower()).first()
    if existing:
        return existing
    preset = model(name=name, category=category, description=description, usage_count=0)
    with store_operation(db, "create preset", model.__tablename__):
        db.add(preset)
    db.refresh(preset)
    log.info(f"Added {model.__tablename__} preset {preset.name!r}")
    return preset


def record_usage(db: Session, model, preset_id: int):
    preset = db.query(model).filter(model.id == preset_id).first()
    if not preset:
        raise NotFoundError("Preset", preset_id)
    with store_operation(db, "record preset usage", model.__tablename__, preset_id):
        preset.usage_count = (preset.usage_count or 0) + 1
    db.refresh(preset)
    return preset


def delete_preset(db: Session, model, preset_id: int) -> None:
    preset = db.query(model).filter(model.id == preset_id).first()
    if not preset:
        raise NotFoundError("Preset", preset_id)
    with store_operation(db, "delete preset", model.__tablename__, preset_id):
        db.delete(preset)
