"""
modules/work_orders/models.py — ORM models for work orders and their line items.

Owns tables: work_orders, work_order_job_lines, work_order_parts

Customer, vehicle and equipment rows belong to other modules and are
referenced by table name only; the aggregate service looks them up itself.
"""

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Boolean,
    ForeignKey, Enum as SQLEnum, Text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from core.base import (
    Base, WorkOrderStatus, WorkOrderPriority, JobLineStatus,
    LaborRateType, PartType, PartStatus, _ENUM_VALUES,
)


class WorkOrder(Base):
    """A unit of shop work for one customer, vehicle or piece of equipment."""
    __tablename__ = "work_orders"

    id = Column(Integer, primary_key=True)
    work_order_number = Column(String(50), unique=True, nullable=True)

    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True)
    equipment_id = Column(Integer, ForeignKey("equipment_assets.id", ondelete="SET NULL"), nullable=True)

    # Technicians are platform users; only the id and display name are kept here
    technician_id = Column(Integer, nullable=True)
    technician_name = Column(String(200), nullable=True)

    description = Column(Text, nullable=True)
    status = Column(SQLEnum(WorkOrderStatus, values_callable=_ENUM_VALUES), default=WorkOrderStatus.PENDING)
    priority = Column(SQLEnum(WorkOrderPriority, values_callable=_ENUM_VALUES), default=WorkOrderPriority.MEDIUM)

    total_cost = Column(Float, default=0)
    estimated_hours = Column(Float, nullable=True)
    due_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    job_lines = relationship(
        "JobLine", back_populates="work_order",
        cascade="all, delete-orphan", order_by="JobLine.display_order",
    )
    parts = relationship(
        "Part", back_populates="work_order",
        cascade="all, delete-orphan", order_by="Part.id",
    )

    def __repr__(self):
        return f"<WorkOrder {self.id}: {self.work_order_number}>"


class JobLine(Base):
    """
    One labour line on a work order.

    total_amount is hours x rate at last save; display_order is the 1-based
    position shown to the user.
    """
    __tablename__ = "work_order_job_lines"

    id = Column(Integer, primary_key=True)
    work_order_id = Column(Integer, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=True)
    subcategory = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)

    estimated_hours = Column(Float, default=0)
    labor_rate = Column(Float, default=0)
    labor_rate_type = Column(
        SQLEnum(LaborRateType, values_callable=_ENUM_VALUES), default=LaborRateType.STANDARD
    )
    total_amount = Column(Float, default=0)

    status = Column(SQLEnum(JobLineStatus, values_callable=_ENUM_VALUES), default=JobLineStatus.PENDING)
    display_order = Column(Integer, default=1)

    is_work_completed = Column(Boolean, default=False)
    completion_date = Column(DateTime, nullable=True)
    completed_by = Column(String(200), nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    work_order = relationship("WorkOrder", back_populates="job_lines")

    def __repr__(self):
        return f"<JobLine {self.id}: {self.name} #{self.display_order}>"


class Part(Base):
    """A part used on a work order, optionally tied to one of its job lines."""
    __tablename__ = "work_order_parts"

    id = Column(Integer, primary_key=True)
    work_order_id = Column(Integer, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    job_line_id = Column(
        Integer, ForeignKey("work_order_job_lines.id", ondelete="SET NULL"), nullable=True, index=True
    )

    name = Column(String(200), nullable=False)
    part_number = Column(String(100), nullable=False)
    part_type = Column(SQLEnum(PartType, values_callable=_ENUM_VALUES), default=PartType.INVENTORY)
    category = Column(String(100), nullable=True)

    quantity = Column(Integer, default=1)
    unit_price = Column(Float, default=0)
    total_price = Column(Float, default=0)

    # Supplier / pricing
    supplier_name = Column(String(200), nullable=True)
    supplier_cost = Column(Float, nullable=True)
    supplier_suggested_retail = Column(Float, nullable=True)
    markup_percentage = Column(Float, nullable=True)
    retail_price = Column(Float, nullable=True)
    customer_price = Column(Float, nullable=True)
    invoice_number = Column(String(100), nullable=True)
    po_line = Column(String(100), nullable=True)

    # Fees and tax
    is_taxable = Column(Boolean, default=True)
    core_charge_amount = Column(Float, nullable=True)
    core_charge_applied = Column(Boolean, default=False)
    eco_fee_amount = Column(Float, nullable=True)
    eco_fee_applied = Column(Boolean, default=False)

    # Warranty / install
    warranty_duration = Column(String(100), nullable=True)
    install_date = Column(DateTime, nullable=True)
    installed_by = Column(String(200), nullable=True)

    status = Column(SQLEnum(PartStatus, values_callable=_ENUM_VALUES), default=PartStatus.PENDING)
    is_stock_item = Column(Boolean, default=False)
    notes = Column(Text, nullable=True)
    notes_internal = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    work_order = relationship("WorkOrder", back_populates="parts")

    def __repr__(self):
        return f"<Part {self.id}: {self.part_number} x{self.quantity}>"
