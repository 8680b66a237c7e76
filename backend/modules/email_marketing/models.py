"""
modules/email_marketing/models.py — ORM models for email marketing.

Owns tables: email_templates, email_campaigns, email_sequences,
email_sequence_steps, email_sequence_enrollments, email_system_settings
"""

from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean,
    ForeignKey, Enum as SQLEnum, Text, JSON, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from core.base import Base, CampaignStatus, EnrollmentStatus, _ENUM_VALUES


class EmailTemplate(Base):
    __tablename__ = "email_templates"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    subject = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    # transactional, marketing, reminder, welcome, follow_up, survey, custom
    category = Column(String(30), default="marketing")
    content = Column(Text, nullable=False)
    # [{"name": "first_name", "default_value": "there", "description": "..."}]
    variables = Column(JSON, default=list)
    is_archived = Column(Boolean, default=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class EmailCampaign(Base):
    """
    A one-off send to a list of customers.

    Delivery happens in the remote trigger-email-campaign function, which
    writes the counters back. ab_test holds the A/B configuration:
    {"enabled", "variants": [...], "winner_criteria", "winner_id",
    "winner_selection_date"}.
    """
    __tablename__ = "email_campaigns"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    subject = Column(String(300), nullable=True)
    content = Column(Text, nullable=True)
    template_id = Column(Integer, ForeignKey("email_templates.id", ondelete="SET NULL"), nullable=True)
    status = Column(SQLEnum(CampaignStatus, values_callable=_ENUM_VALUES), default=CampaignStatus.DRAFT)
    scheduled_at = Column(DateTime, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    recipient_ids = Column(JSON, default=list)
    ab_test = Column(JSON, nullable=True)

    # Delivery counters, maintained by the remote function
    total_recipients = Column(Integer, default=0)
    delivered = Column(Integer, default=0)
    opened = Column(Integer, default=0)
    clicked = Column(Integer, default=0)
    bounced = Column(Integer, default=0)
    unsubscribed = Column(Integer, default=0)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class EmailSequence(Base):
    """An automated series of emails sent to enrolled customers."""
    __tablename__ = "email_sequences"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    trigger_type = Column(String(20), default="manual")  # manual, event, schedule
    trigger_event = Column(String(100), nullable=True)    # set when trigger_type == "event"
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    steps = relationship(
        "EmailSequenceStep", back_populates="sequence",
        cascade="all, delete-orphan", order_by="EmailSequenceStep.position",
    )
    enrollments = relationship(
        "EmailSequenceEnrollment", back_populates="sequence", cascade="all, delete-orphan",
    )


class EmailSequenceStep(Base):
    __tablename__ = "email_sequence_steps"

    id = Column(Integer, primary_key=True)
    sequence_id = Column(Integer, ForeignKey("email_sequences.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), default="New Step")
    template_id = Column(Integer, ForeignKey("email_templates.id", ondelete="SET NULL"), nullable=True)
    subject = Column(String(300), nullable=True)
    body = Column(Text, nullable=True)
    delay_hours = Column(Integer, default=24)
    delay_type = Column(String(20), default="fixed")  # fixed, business_days
    position = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True)
    # {"type": "event"|"property", "field": ..., "operator": ..., "value": ...}
    condition = Column(JSON, nullable=True)

    sequence = relationship("EmailSequence", back_populates="steps")


class EmailSequenceEnrollment(Base):
    __tablename__ = "email_sequence_enrollments"
    __table_args__ = (UniqueConstraint("sequence_id", "customer_id", name="uq_enrollment_sequence_customer"),)

    id = Column(Integer, primary_key=True)
    sequence_id = Column(Integer, ForeignKey("email_sequences.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    status = Column(SQLEnum(EnrollmentStatus, values_callable=_ENUM_VALUES), default=EnrollmentStatus.ACTIVE)
    current_step = Column(Integer, default=1)  # position of the next step to send
    enrolled_at = Column(DateTime, server_default=func.now())
    next_send_at = Column(DateTime, nullable=True)
    last_sent_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    sequence = relationship("EmailSequence", back_populates="enrollments")


class EmailSystemSetting(Base):
    """Key-value settings for the email subsystem (e.g. processing_schedule)."""
    __tablename__ = "email_system_settings"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
