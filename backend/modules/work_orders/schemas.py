"""
modules/work_orders/schemas.py — Pydantic schemas for work orders, job lines and parts.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AliasChoices, Field

from core.base import (
    JobLineStatus, LaborRateType, PartStatus, PartType,
    WorkOrderPriority, WorkOrderStatus,
)
from core.schemas import ShopModel


# ============== Job Line Schemas ==============

class JobLineFields(ShopModel):
    # status / labor_rate_type stay plain strings here; the repository
    # coerces or rejects unknown values depending on strict mode
    name: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    labor_rate: Optional[float] = Field(default=None, ge=0)
    labor_rate_type: Optional[str] = None
    total_amount: Optional[float] = Field(default=None, ge=0)
    status: Optional[str] = None
    display_order: Optional[int] = Field(default=None, ge=1)
    is_work_completed: Optional[bool] = None
    completed_by: Optional[str] = None
    notes: Optional[str] = None


class JobLineCreate(JobLineFields):
    name: str


class JobLineUpdate(JobLineFields):
    pass


class JobLineDraft(JobLineFields):
    """A line that only exists in the editor; draft_key is the client's handle for it."""
    kind: Literal["draft"]
    draft_key: str
    name: str


class PersistedJobLine(JobLineFields):
    kind: Literal["persisted"]
    id: int


JobLineUpsert = Annotated[Union[JobLineDraft, PersistedJobLine], Field(discriminator="kind")]


class JobLineResponse(ShopModel):
    id: int
    work_order_id: int
    name: str
    category: Optional[str] = None
    subcategory: Optional[str] = None
    description: Optional[str] = None
    estimated_hours: float = 0
    labor_rate: float = 0
    labor_rate_type: LaborRateType = LaborRateType.STANDARD
    total_amount: float = 0
    status: JobLineStatus = JobLineStatus.PENDING
    display_order: int = 1
    is_work_completed: bool = False
    completion_date: Optional[datetime] = None
    completed_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JobLineReorder(ShopModel):
    ordered_ids: List[int]


class JobLineCompletion(ShopModel):
    completed: bool
    completed_by: Optional[str] = None


class JobLineStatusUpdate(ShopModel):
    status: str


# ============== Part Schemas ==============

class PartForm(ShopModel):
    """The part entry form. Aliases are the form's own keys (partName, ...).

    The names a part is read back with (name, supplier_suggested_retail) are
    accepted too, so a client can send back what it received.
    """
    part_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("partName", "part_name", "name"),
        serialization_alias="partName",
    )
    part_number: Optional[str] = None
    part_type: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[int] = None
    unit_price: Optional[float] = None
    total_price: Optional[float] = None
    supplier_name: Optional[str] = None
    supplier_cost: Optional[float] = None
    supplier_suggested_retail_price: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices(
            "supplierSuggestedRetailPrice", "supplier_suggested_retail_price",
            "supplierSuggestedRetail", "supplier_suggested_retail",
        ),
        serialization_alias="supplierSuggestedRetailPrice",
    )
    markup_percentage: Optional[float] = None
    retail_price: Optional[float] = None
    customer_price: Optional[float] = None
    invoice_number: Optional[str] = None
    po_line: Optional[str] = None
    is_taxable: Optional[bool] = None
    core_charge_amount: Optional[float] = None
    core_charge_applied: Optional[bool] = None
    eco_fee_amount: Optional[float] = None
    eco_fee_applied: Optional[bool] = None
    warranty_duration: Optional[str] = None
    install_date: Optional[str] = None
    installed_by: Optional[str] = None
    status: Optional[str] = None
    is_stock_item: Optional[bool] = None
    notes: Optional[str] = None
    notes_internal: Optional[str] = None
    job_line_id: Optional[int] = None

    def to_form(self) -> dict:
        """Supplied fields keyed the way the form names them."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class PartResponse(ShopModel):
    id: int
    work_order_id: int
    job_line_id: Optional[int] = None
    name: str
    part_number: str
    part_type: PartType
    category: Optional[str] = None
    quantity: int = 1
    unit_price: float = 0
    total_price: float = 0
    supplier_name: Optional[str] = None
    supplier_cost: Optional[float] = None
    supplier_suggested_retail: Optional[float] = None
    markup_percentage: Optional[float] = None
    retail_price: Optional[float] = None
    customer_price: Optional[float] = None
    price_tier: Optional[str] = None
    invoice_number: Optional[str] = None
    po_line: Optional[str] = None
    is_taxable: bool = True
    core_charge_amount: Optional[float] = None
    core_charge_applied: bool = False
    eco_fee_amount: Optional[float] = None
    eco_fee_applied: bool = False
    warranty_duration: Optional[str] = None
    install_date: Optional[datetime] = None
    installed_by: Optional[str] = None
    status: PartStatus = PartStatus.PENDING
    is_stock_item: bool = False
    notes: Optional[str] = None
    notes_internal: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PartAssign(ShopModel):
    job_line_id: Optional[int] = None


class PricePreviewRequest(ShopModel):
    supplier_cost: float = Field(ge=0)
    markup_percentage: float = 0
    supplier_suggested_retail: Optional[float] = None
    customer_price: Optional[float] = Field(default=None, ge=0)


class PricePreview(ShopModel):
    customer_price: float
    price_tier: Optional[str] = None


# ============== Work Order Schemas ==============

class WorkOrderBase(ShopModel):
    work_order_number: Optional[str] = None
    customer_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    equipment_id: Optional[int] = None
    technician_id: Optional[int] = None
    technician_name: Optional[str] = None
    description: Optional[str] = None
    status: WorkOrderStatus = WorkOrderStatus.PENDING
    priority: WorkOrderPriority = WorkOrderPriority.MEDIUM
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    due_date: Optional[datetime] = None


class WorkOrderCreate(WorkOrderBase):
    job_lines: Optional[List[JobLineCreate]] = None


class WorkOrderUpdate(ShopModel):
    work_order_number: Optional[str] = None
    customer_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    equipment_id: Optional[int] = None
    technician_id: Optional[int] = None
    technician_name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[WorkOrderStatus] = None
    priority: Optional[WorkOrderPriority] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    due_date: Optional[datetime] = None


class WorkOrderTotalsView(ShopModel):
    labor_total: float = 0
    parts_total: float = 0
    taxable_parts_total: float = 0
    core_charges: float = 0
    eco_fees: float = 0
    grand_total: float = 0


class WorkOrderSummary(ShopModel):
    id: int
    work_order_number: Optional[str] = None
    status: WorkOrderStatus
    priority: WorkOrderPriority
    description: Optional[str] = None
    customer_id: Optional[int] = None
    customer_name: str
    technician: str
    total_cost: float = 0
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class WorkOrderView(WorkOrderSummary):
    """A work order with every related row resolved for display."""
    vehicle_id: Optional[int] = None
    equipment_id: Optional[int] = None
    technician_id: Optional[int] = None
    estimated_hours: Optional[float] = None
    updated_at: Optional[datetime] = None
    customer_email: str = ""
    customer_phone: str = ""
    customer_address: str = ""
    customer_city: str = ""
    customer_state: str = ""
    customer_zip: str = ""
    vehicle_year: str = ""
    vehicle_make: str = ""
    vehicle_model: str = ""
    vehicle_vin: str = ""
    vehicle_license_plate: str = ""
    equipment_name: str = ""
    job_lines: List[JobLineResponse] = []
    parts: List[PartResponse] = []
    totals: WorkOrderTotalsView = WorkOrderTotalsView()
