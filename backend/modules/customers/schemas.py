"""
modules/customers/schemas.py — Pydantic schemas for customers and vehicles.
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class VehicleBase(BaseModel):
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None
    vin: Optional[str] = Field(default=None, max_length=17)
    license_plate: Optional[str] = None


class VehicleCreate(VehicleBase):
    pass


class VehicleResponse(VehicleBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: Optional[int] = None


class CustomerBase(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    notes: Optional[str] = None


class CustomerCreate(CustomerBase):
    vehicles: Optional[List[VehicleCreate]] = None


class CustomerUpdate(CustomerBase):
    pass


class CustomerResponse(CustomerBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str = ""
    created_at: datetime
    vehicles: List[VehicleResponse] = []
