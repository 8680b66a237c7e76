"""
modules/catalog/schemas.py — Pydantic schemas for categories and products.
"""

import re
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============== Category Schemas ==============

class CategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[int] = None

    @field_validator("slug")
    @classmethod
    def slug_format(cls, v):
        if v is not None and not re.fullmatch(r"[a-z0-9]+(?:-[a-z0-9]+)*", v):
            raise ValueError("slug must be lowercase letters, digits and hyphens")
        return v


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[int] = None


# ============== Product Schemas ==============

class ProductBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    sku: Optional[str] = None
    category_id: Optional[int] = None
    price: float = Field(default=0, ge=0)
    sale_price: Optional[float] = Field(default=None, ge=0)
    stock_quantity: int = Field(default=0, ge=0)
    is_active: bool = True
    description: Optional[str] = None


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    sku: Optional[str] = None
    category_id: Optional[int] = None
    price: Optional[float] = Field(default=None, ge=0)
    sale_price: Optional[float] = Field(default=None, ge=0)
    stock_quantity: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    description: Optional[str] = None


class StockAdjust(BaseModel):
    delta: int


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    effective_price: float = 0
    category_name: Optional[str] = None
    created_at: Optional[datetime] = None
