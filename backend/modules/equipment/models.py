"""
modules/equipment/models.py — ORM model for equipment assets.

Owns tables: equipment_assets
"""

from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Text
from sqlalchemy.sql import func

from core.base import Base


class EquipmentAsset(Base):
    __tablename__ = "equipment_assets"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    asset_type = Column(String(50), nullable=True)  # e.g. tractor, lift, compressor
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    serial_number = Column(String(100), nullable=True)
    status = Column(String(30), default="active")  # active, in-service, retired
    location = Column(String(200), nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    purchase_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<EquipmentAsset {self.id}: {self.name}>"
