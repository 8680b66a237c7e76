"""
modules/catalog/models.py — ORM models for the shopping catalog.

Owns tables: product_categories, products
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from core.base import Base


class ProductCategory(Base):
    """A catalog category; parent_id nests categories one under another."""
    __tablename__ = "product_categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(200), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(Integer, ForeignKey("product_categories.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<ProductCategory {self.slug}>"


class Product(Base):
    """A sellable product in the shop catalog."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(50), unique=True, nullable=True)
    category_id = Column(Integer, ForeignKey("product_categories.id", ondelete="SET NULL"), nullable=True)
    price = Column(Float, default=0)
    sale_price = Column(Float, nullable=True)
    stock_quantity = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    category = relationship("ProductCategory", back_populates="products")

    @property
    def effective_price(self) -> float:
        if self.sale_price is not None and self.sale_price < (self.price or 0):
            return self.sale_price
        return self.price or 0

    def __repr__(self):
        return f"<Product {self.name}>"
