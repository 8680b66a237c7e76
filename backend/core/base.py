"""
core/base.py — Declarative Base and shared enums.

All ORM models import Base from here.
All shared enums (used across multiple domain modules) live here
to avoid circular imports between domain modules.
"""

from enum import Enum
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# SQLAlchemy 2.x defaults to using enum member NAMES as DB values.
# We want member VALUES (lowercase strings) instead.
_ENUM_VALUES = lambda x: [e.value for e in x]


class WorkOrderStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    WAITING_PARTS = "waiting-parts"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class WorkOrderPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class JobLineStatus(str, Enum):
    """pending -> in-progress -> completed, with on-hold as a side state.

    Transitions are user-driven; nothing guards against skipping or reversing.
    """
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"


class LaborRateType(str, Enum):
    STANDARD = "standard"
    DIAGNOSTIC = "diagnostic"
    EMERGENCY = "emergency"
    WARRANTY = "warranty"
    INTERNAL = "internal"


class PartType(str, Enum):
    INVENTORY = "inventory"
    NON_INVENTORY = "non-inventory"
    SPECIAL_ORDER = "special-order"


class PartStatus(str, Enum):
    PENDING = "pending"
    ORDERED = "ordered"
    RECEIVED = "received"
    INSTALLED = "installed"
    RETURNED = "returned"
    BACKORDERED = "backordered"
    DEFECTIVE = "defective"


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENDING = "sending"
    SENT = "sent"
    CANCELLED = "cancelled"

