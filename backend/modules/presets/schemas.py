"""
modules/presets/schemas.py — Pydantic schemas for presets.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class PresetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category: Optional[str] = None
    description: Optional[str] = None


class PresetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    usage_count: int = 0
    created_at: Optional[datetime] = None
