"""
modules/presets/models.py — ORM models for job line presets.

Owns tables: maintenance_item_presets, maintenance_type_presets
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.sql import func

from core.base import Base


class PresetColumns:
    """Shared shape of both preset tables."""
    id = Column(Integer, primary_key=True)
    name = Column(String(200), unique=True, nullable=False)
    category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    usage_count = Column(Integer, default=0)
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return f"<{type(self).__name__} {self.id}: {self.name}>"


class MaintenanceItemPreset(PresetColumns, Base):
    """A named job line ("Oil Change") offered when adding labour."""
    __tablename__ = "maintenance_item_presets"


class MaintenanceTypePreset(PresetColumns, Base):
    """A maintenance category ("Preventive", "Repair") for job lines."""
    __tablename__ = "maintenance_type_presets"
