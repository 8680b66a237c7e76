"""
modules/email_marketing/schemas.py — Pydantic schemas for templates, campaigns,
A/B tests, sequences, enrollments and processing settings.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import Field, field_validator

from core.base import CampaignStatus, EnrollmentStatus
from core.schemas import ShopModel

TemplateCategory = Literal[
    "transactional", "marketing", "reminder", "welcome", "follow_up", "survey", "custom",
]
TriggerType = Literal["manual", "event", "schedule"]
TriggerEvent = Literal["new_customer", "service_complete", "invoice_paid", "appointment_scheduled"]
DelayType = Literal["fixed", "business_days"]
WinnerCriteria = Literal["open_rate", "click_rate"]


# ============== Template Schemas ==============

class TemplateVariable(ShopModel):
    name: str
    default_value: Optional[str] = None
    description: Optional[str] = None


class TemplateCreate(ShopModel):
    name: str = Field(min_length=1, max_length=200)
    subject: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    category: TemplateCategory = "marketing"
    content: str
    variables: List[TemplateVariable] = []


class TemplateUpdate(ShopModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    subject: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = None
    category: Optional[TemplateCategory] = None
    content: Optional[str] = None
    variables: Optional[List[TemplateVariable]] = None
    is_archived: Optional[bool] = None


class TemplateResponse(ShopModel):
    id: int
    name: str
    subject: str
    description: Optional[str] = None
    category: str = "marketing"
    content: str
    variables: List[TemplateVariable] = []
    is_archived: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("variables", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []


# ============== A/B Test Schemas ==============

class ABVariant(ShopModel):
    id: str
    name: str
    subject: str = ""
    content: str = ""
    recipient_percentage: int = Field(default=0, ge=0, le=100)
    recipients: int = Field(default=0, ge=0)
    opened: int = Field(default=0, ge=0)
    clicked: int = Field(default=0, ge=0)


class ABTest(ShopModel):
    enabled: bool = True
    variants: List[ABVariant]
    winner_criteria: WinnerCriteria = "open_rate"
    winner_id: Optional[str] = None
    winner_selection_date: Optional[datetime] = None


class VariantCreate(ShopModel):
    subject: Optional[str] = None
    content: Optional[str] = None


class Rebalance(ShopModel):
    index: int = Field(ge=0)
    value: int


# ============== Campaign Schemas ==============

class CampaignCreate(ShopModel):
    name: str = Field(min_length=1, max_length=200)
    subject: Optional[str] = None
    content: Optional[str] = None
    template_id: Optional[int] = None
    scheduled_at: Optional[datetime] = None
    recipient_ids: List[int] = []
    ab_test: Optional[ABTest] = None


class CampaignUpdate(ShopModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    subject: Optional[str] = None
    content: Optional[str] = None
    template_id: Optional[int] = None
    status: Optional[CampaignStatus] = None
    scheduled_at: Optional[datetime] = None
    recipient_ids: Optional[List[int]] = None
    ab_test: Optional[ABTest] = None


class CampaignStats(ShopModel):
    """Delivery counters written back after a send."""
    total_recipients: Optional[int] = Field(default=None, ge=0)
    delivered: Optional[int] = Field(default=None, ge=0)
    opened: Optional[int] = Field(default=None, ge=0)
    clicked: Optional[int] = Field(default=None, ge=0)
    bounced: Optional[int] = Field(default=None, ge=0)
    unsubscribed: Optional[int] = Field(default=None, ge=0)


class CampaignAnalytics(ShopModel):
    sent: int = 0
    delivered: int = 0
    opened: int = 0
    clicked: int = 0
    bounced: int = 0
    unsubscribed: int = 0
    open_rate: float = 0
    click_rate: float = 0
    click_to_open_rate: float = 0
    bounce_rate: float = 0
    unsubscribe_rate: float = 0


class CampaignResponse(ShopModel):
    id: int
    name: str
    subject: Optional[str] = None
    content: Optional[str] = None
    template_id: Optional[int] = None
    status: CampaignStatus
    scheduled_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    recipient_ids: List[int] = []
    ab_test: Optional[ABTest] = None
    total_recipients: int = 0
    delivered: int = 0
    opened: int = 0
    clicked: int = 0
    bounced: int = 0
    unsubscribed: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("recipient_ids", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []


# ============== Sequence Schemas ==============

class StepCreate(ShopModel):
    name: str = "New Step"
    template_id: Optional[int] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    delay_hours: int = Field(default=24, ge=0)
    delay_type: DelayType = "fixed"
    is_active: bool = True
    condition: Optional[dict[str, Any]] = None


class StepUpdate(ShopModel):
    name: Optional[str] = None
    template_id: Optional[int] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    delay_hours: Optional[int] = Field(default=None, ge=0)
    delay_type: Optional[DelayType] = None
    is_active: Optional[bool] = None
    condition: Optional[dict[str, Any]] = None


class StepResponse(ShopModel):
    id: int
    sequence_id: int
    name: str
    template_id: Optional[int] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    delay_hours: int
    delay_type: str
    position: int
    is_active: bool = True
    condition: Optional[dict[str, Any]] = None


class StepReorder(ShopModel):
    ordered_ids: List[int]


class SequenceCreate(ShopModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    trigger_type: TriggerType = "manual"
    trigger_event: Optional[TriggerEvent] = None
    is_active: bool = True
    steps: List[StepCreate] = []


class SequenceUpdate(ShopModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    trigger_type: Optional[TriggerType] = None
    trigger_event: Optional[TriggerEvent] = None
    is_active: Optional[bool] = None


class SequenceResponse(ShopModel):
    id: int
    name: str
    description: Optional[str] = None
    trigger_type: str
    trigger_event: Optional[str] = None
    is_active: bool
    steps: List[StepResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============== Enrollment Schemas ==============

class EnrollmentCreate(ShopModel):
    customer_id: int


class EnrollmentResponse(ShopModel):
    id: int
    sequence_id: int
    customer_id: int
    status: EnrollmentStatus
    current_step: int
    enrolled_at: Optional[datetime] = None
    next_send_at: Optional[datetime] = None
    last_sent_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


# ============== Processing Schemas ==============

class ProcessRequest(ShopModel):
    sequence_id: Optional[int] = None
    customer_id: Optional[int] = None
    force: bool = False


class ProcessingSchedule(ShopModel):
    enabled: bool = False
    cron: str = "0 * * * *"
    sequence_ids: List[int] = []

    @field_validator("cron")
    @classmethod
    def five_fields(cls, v: str) -> str:
        v = " ".join(v.split())
        if len(v.split(" ")) != 5:
            raise ValueError("cron must have five fields: minute hour day month weekday")
        return v
