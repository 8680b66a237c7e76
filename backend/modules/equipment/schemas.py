"""
modules/equipment/schemas.py — Pydantic schemas for equipment assets.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class EquipmentBase(BaseModel):
    name: str
    asset_type: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    status: str = "active"
    location: Optional[str] = None
    customer_id: Optional[int] = None
    purchase_date: Optional[date] = None
    notes: Optional[str] = None


class EquipmentCreate(EquipmentBase):
    pass


class EquipmentUpdate(BaseModel):
    name: Optional[str] = None
    asset_type: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    status: Optional[str] = None
    location: Optional[str] = None
    customer_id: Optional[int] = None
    purchase_date: Optional[date] = None
    notes: Optional[str] = None


class EquipmentResponse(EquipmentBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
